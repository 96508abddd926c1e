# run.py
"""Local development server for the UVbunny API (Cloud Functions use main.py)."""
import logging
import os
from dotenv import load_dotenv

load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.abspath(__file__)), '.env'))

from uvbunny import create_app  # noqa: E402

app = create_app(os.getenv('FLASK_ENV', 'development'))

if __name__ == '__main__':
    host = os.getenv('FLASK_RUN_HOST', '127.0.0.1')
    port = int(os.getenv('FLASK_RUN_PORT', 5000))
    logging.info(f"Starting UVbunny API on {host}:{port}")
    app.run(host=host, port=port, debug=app.config.get('DEBUG', False), threaded=True)
