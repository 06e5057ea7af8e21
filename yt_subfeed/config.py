"""Constantes de configuração padrão do agregador de inscrições do YouTube."""

YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"
TIMEOUT_SECS = 30
MAX_ATTEMPTS = 1                 # 1 = sem retry; cada tentativa extra gasta quota
DEFAULT_RPS = 8
BATCH_SIZE_IDS = 50              # videos.list aceita até 50
ACTIVITIES_PER_CHANNEL = 10      # teto por canal em activities.list
CHANNEL_CONCURRENCY = 10         # máx. de chamadas de canal em voo

DEFAULT_MAX_RESULTS = 25
MIN_MAX_RESULTS, MAX_MAX_RESULTS = 1, 100
DEFAULT_MAX_CHANNELS = 15
MIN_MAX_CHANNELS, MAX_MAX_CHANNELS = 1, 50
SUBSCRIPTIONS_PAGE_MAX = 50      # subscriptions.list aceita até 50

# custo em unidades de quota por chamada
ENDPOINT_COSTS = {
    "subscriptions": 1,
    "activities": 1,
    "videos": 1,
    "search": 100,
}

ACTIVITY_SOURCES = ("activities", "search")
DEFAULT_ACTIVITY_SOURCE = "activities"

QUOTA_POLICIES = ("observe", "enforce")
DEFAULT_QUOTA_POLICY = "observe"

ACCESS_TOKEN_ENV = "YOUTUBE_ACCESS_TOKEN"
DEFAULT_LOG_LEVEL = "INFO"
