import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify

from tt.api import tt_bp

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="[%(levelname)s] %(name)s: %(message)s",
)


def create_app():
    app = Flask(__name__)
    app.json.ensure_ascii = False

    app.register_blueprint(tt_bp)

    @app.route('/')
    def index():
        return jsonify({"service": "text-transformation", "api": "/api/tt"})

    return app


app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=int(os.getenv('PORT', '5000')))
