"""
Input validation utilities
Server-side validation for values arriving through the JSON API
"""
from cityhub.config import Config


class Validator:
    """Input validation utilities"""

    @staticmethod
    def validate_string(value, min_len=1, max_len=1000, field_name="Field"):
        """Validate string length"""
        if not value or not isinstance(value, str):
            return False, f"{field_name} is required"
        if len(value.strip()) < min_len:
            return False, f"{field_name} must be at least {min_len} characters"
        if len(value) > max_len:
            return False, f"{field_name} must not exceed {max_len} characters"
        return True, "Valid"

    @staticmethod
    def validate_query(text):
        """Validate free-text symptom input; blank input is not an error, just nothing to do."""
        return Validator.validate_string(text, max_len=Config.MAX_QUERY_LENGTH, field_name="Symptom")

    @staticmethod
    def validate_domain(domain):
        """Validate facility domain"""
        if domain not in Config.FACILITY_DOMAINS:
            return False, f"Domain must be one of: {', '.join(Config.FACILITY_DOMAINS)}"
        return True, "Valid"

    @staticmethod
    def validate_flag(value):
        """Interpret a query-string flag such as ?open=true"""
        return str(value or '').strip().lower() in ('1', 'true', 'yes', 'on')
