"""
WSGI entry point (Elastic Beanstalk looks for a module-level `application`).
The app, its settings and any AWS connection are only built here, not when
backend.app is imported.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from backend.app import create_app

application = create_app()

if __name__ == "__main__":
    application.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
