"""WSGI entry point."""
import atexit
import sys
import os

# Ensure the project directory is in the Python path
sys.path.insert(0, os.path.dirname(__file__))

# Import the Flask app
from estimator import create_app, shutdown_app

# Create the application instance
app = create_app()
atexit.register(shutdown_app, app)

if __name__ == "__main__":
    app.run()
