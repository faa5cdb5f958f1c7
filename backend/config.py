import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '8080'))
    # Comma-separated list of browser origins allowed to reach the API and socket
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',') if o.strip()
    ]
    # Seconds to wait for sessions to close on SIGTERM before forcing exit
    SHUTDOWN_GRACE_SEC = float(os.environ.get('SHUTDOWN_GRACE_SEC', '5'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
