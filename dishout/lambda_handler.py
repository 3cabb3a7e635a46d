import os
import serverless_wsgi

from dishout import create_app
from dishout.config.settings import config

app = create_app(config[os.getenv("DISHOUT_ENV", "production")])

def handler(event, context):
    return serverless_wsgi.handle_request(app, event, context)
