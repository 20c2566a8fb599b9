
from .settings import *

DEBUG = False
SECRET_KEY = os.environ["DJANGO_SECRET_KEY"]
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(',')

CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(',')

# Seat accounting relies on SELECT ... FOR UPDATE, which SQLite ignores
DATABASES['default']['ENGINE'] = os.getenv("DB_ENGINE", 'django.db.backends.postgresql')
if not DATABASES['default']['ENGINE'].endswith('sqlite3'):
    DATABASES['default'].pop('OPTIONS', None)
    DATABASES['default'].pop('TEST', None)
DATABASES['default']['CONN_MAX_AGE'] = int(os.getenv("DB_CONN_MAX_AGE", 60))

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {
            "hosts": [os.getenv("REDIS_URL", "redis://localhost:6379/0")],
        },
    }
}
