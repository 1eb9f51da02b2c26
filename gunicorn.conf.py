# use in gunicorn as: env/bin/gunicorn fileservice.api:app -c gunicorn.conf.py
# every worker is a separate process with its own download link cache

# Workers
workers = 5
worker_class = 'uvicorn.workers.UvicornWorker'

# Socket
bind = 'localhost:5001'

# Logging
# loglevel = 'debug'
# accesslog = '/tmp/fileservice_access_log'
# errorlog =  '/tmp/fileservice_error_log'
