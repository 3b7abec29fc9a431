# backend/wsgi.py
# Entry point for `flask --app wsgi` and WSGI servers.
from estoque import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=3000)
