"""Centralized constants for IPVerify."""


# ===== GEO & SPEED =====
class SpeedConstants:
    EARTH_RADIUS_KM = 6371.0
    KM_TO_MILES = 0.621371192
    SECONDS_PER_HOUR = 3600

    # Suspicion threshold in miles/hour
    MAX_SPEED_MPH = 500

    # Returned when two events share a timestamp and speed is undefined
    ZERO_ELAPSED_SPEED = -1


# ===== STORE =====
class StoreConstants:
    TABLE_NAME = "events"
    USER_TIME_INDEX = "idx_events_user_time"
    MEMORY_PATH = ":memory:"

    # Largest value an SQLite INTEGER column holds
    MAX_TIMESTAMP = 2 ** 63 - 1


# ===== API =====
class APIConstants:
    STATUS_URL = "/v1/status"
    VERIFY_URL = "/v1/verify"
    RESET_URL = "/v1/reset"
    STATUS_MESSAGE = "IP verify service is up and running"
    SERVICE_NAME = "ipverify-gateway"
