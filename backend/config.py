import os


def _origins(raw):
    if not raw or raw.strip() == '*':
        return '*'
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3001'))
    CORS_ORIGINS = _origins(os.environ.get('CORS_ORIGINS', '*'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    SOCKETIO_NAMESPACE = '/ws'
    # Game timing is fixed, not read from the environment
    ROUND_DURATION_MS = 120000
    INTER_ROUND_DELAY_MS = 10000
    HEARTBEAT_INTERVAL_SEC = 30
    # heartbeat intervals a silent or vanished session is allowed before it is dropped
    HEARTBEAT_MAX_MISSED = 1
