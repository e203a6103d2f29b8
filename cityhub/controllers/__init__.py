from cityhub.controllers.facility_controller import facility_bp

__all__ = ['facility_bp']
