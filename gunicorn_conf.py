# gunicorn -c gunicorn_conf.py main:app
import multiprocessing
import os


def env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def env_str(name: str, default: str) -> str:
    value = os.environ.get(name)
    return value if value is not None and value.strip() != "" else default


bind = f"0.0.0.0:{env_int('PORT', 5000)}"

# Geocoding blocks the worker for up to GEOCODER_TIMEOUT seconds per row,
# so CSV imports want threads rather than more processes
cores = multiprocessing.cpu_count() or 1
workers = env_int("GUNICORN_WORKERS", cores + 1)
threads = env_int("GUNICORN_THREADS", 4)
worker_class = env_str("GUNICORN_WORKER_CLASS", "gthread")

# A large import geocodes every row
timeout = env_int("GUNICORN_TIMEOUT", 120)
graceful_timeout = env_int("GUNICORN_GRACEFUL_TIMEOUT", 30)
keepalive = env_int("GUNICORN_KEEPALIVE", 5)

accesslog = "-"
errorlog = "-"
loglevel = env_str("GUNICORN_LOGLEVEL", env_str("LOG_LEVEL", "info").lower())

# Don't run init_db once per worker
preload_app = True
