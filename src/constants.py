import re


class SessionId:
    PREFIX = "sess_"
    PATTERN = re.compile(r"^sess_[a-f0-9]{8}$")


class Limits:
    HISTORY_MAX_ITEMS = 50
    HISTORY_PAGE_SIZE = 4
    MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
    MAX_SESSIONS = 100


class Confidence:
    HIGH = 0.7  # 초과 시 high
    MEDIUM = 0.4  # 초과 시 medium, 이하 low


class OverlayRule:
    LABEL_FLIP_TOP_PCT = 10.0  # 박스 상단이 이 값(%) 미만이면 라벨을 박스 안쪽으로
    LABEL_OFFSET_PCT = 3.0
    LABEL_MIN_TOP_PCT = 2.0
    LABEL_INSIDE_OFFSET_PCT = 1.0


DEFAULT_LABEL = "Microplastic"
