import os
import logging

from dishout import create_app
from dishout.config.settings import config

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create the Flask application
app = create_app(config[os.getenv("DISHOUT_ENV", "default")])

if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=False, use_reloader=False)
