"""
Symptom rule table.

Each rule maps a set of literal keywords to a department, a short description,
the facility categories worth recommending and an urgency tier. Every rule is
evaluated against the input; the order only decides how departments are listed.
"""
from cityhub.models.models import Rule, Urgency

EMERGENCY_DEPARTMENT = '응급의학과'
NIGHT_CARE_DEPARTMENT = '24시 진료/응급실'

GENERAL_HOSPITAL_TYPE = '종합병원'
DENTAL_KEYWORD = '치과'
INTERNAL_MEDICINE_KEYWORD = '내과'

# Markers for large general/university hospitals in names and categories
LARGE_HOSPITAL_MARKERS = ('종합', '대학')

# Used when no rule matches
FALLBACK_TYPES = ('종합병원', '병원', '의원', '내과')

ANALYSIS_RULES = (
    Rule(
        keywords=('숨', '호흡', '기절', '의식', '심장', '흉통', '가슴', '마비', '출혈', '피가', '119', '응급'),
        department=EMERGENCY_DEPARTMENT,
        description='즉시 응급 처치가 필요한 위급 상황입니다.',
        eligible_types=('종합병원', '병원'),
        urgency=Urgency.EMERGENCY,
    ),
    Rule(
        keywords=('밤', '새벽', '주말', '공휴일', '지금', '야간'),
        department=NIGHT_CARE_DEPARTMENT,
        description='야간/휴일 진료가 가능한 병원을 우선합니다.',
        eligible_types=('종합병원', '병원'),
        urgency=Urgency.URGENT,
    ),
    Rule(
        keywords=('배', '소화', '토', '속', '체', '설사', '복통', '위', '장염'),
        department='내과',
        description='소화기 계통 문제',
        eligible_types=('내과', '종합병원', '병원', '의원'),
    ),
    Rule(
        keywords=('뼈', '허리', '무릎', '관절', '다리', '팔', '골절', '근육', '통증', '어깨', '디스크'),
        department='정형외과',
        description='근골격계 질환',
        eligible_types=('정형외과', '종합병원', '병원'),
    ),
    Rule(
        keywords=('눈', '시력', '충혈', '눈곱', '다래끼', '안구'),
        department='안과',
        description='안구 질환',
        eligible_types=('안과', '종합병원'),
    ),
    Rule(
        keywords=('이', '치아', '잇몸', '사랑니', '스케일링', '턱', '치통'),
        department='치과',
        description='구강 질환',
        eligible_types=('치과병원', '치과'),
    ),
    Rule(
        keywords=('피부', '두드러기', '가려움', '발진', '아토피', '여드름', '화상'),
        department='피부과',
        description='피부 질환',
        eligible_types=('피부과', '종합병원', '병원'),
    ),
    Rule(
        keywords=('코', '목', '감기', '기침', '콧물', '귀', '청력', '비염'),
        department='이비인후과',
        description='호흡기/이비인후과 질환',
        eligible_types=('이비인후과', '종합병원', '병원', '내과'),
    ),
    Rule(
        keywords=('열', '몸살', '오한', '두통', '독감'),
        department='내과',
        description='전신 증상 및 고열',
        eligible_types=('내과', '종합병원', '병원', '의원'),
        urgency=Urgency.URGENT,
    ),
    Rule(
        keywords=('침', '한약', '체질', '부항'),
        department='한방과',
        description='한방 진료',
        eligible_types=('한방병원', '한의원'),
    ),
)
