import httpx


class RandomUserConfig:
    API_BASE_URL = "https://randomuser.me/api/"
    MAX_RESULTS = 5000
    REQUEST_TIMEOUT = httpx.Timeout(30.0, connect=10.0)
    INCLUDED_FIELDS = "name,email,picture"
