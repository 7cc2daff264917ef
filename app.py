import os

from pishield import create_app

app = create_app()

# For gunicorn and other WSGI servers
application = app

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    print("Starting Pi Shield API...")
    print(f"Running in local development mode on port {port}")
    app.run(debug=os.environ.get('FLASK_DEBUG', 'false').lower() == 'true',
            host='0.0.0.0', port=port, threaded=True)
