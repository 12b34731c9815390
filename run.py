"""
Entry point for Flask.

Usage (from project root):

    flask --app run.py init-db
    flask --app run.py reset-state
    flask --app run.py export-state --indent 2

"""

from solar_os import create_app

# Application object picked up by `flask --app run.py ...`; it builds the store on import.
app = create_app()
