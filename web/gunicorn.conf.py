import os, multiprocessing

wsgi_app = "config.wsgi:application"
bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"


def cpu():
    return max(1, multiprocessing.cpu_count())


# Processes (workers); checkout and status changes hold row locks briefly,
# so threads cover DB wait time
workers = int(os.getenv("GUNI_WORKERS", str(min(max(2, cpu() * 2), 8))))
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

# Timeouts
timeout = int(os.getenv("GUNI_TIMEOUT", "30"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

# Application logs go through Django LOGGING (JSON); gunicorn keeps its own
accesslog = None if os.getenv("GUNI_ACCESSLOG", "0") != "1" else "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
