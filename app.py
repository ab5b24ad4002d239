"""Development entry point: ``python app.py``."""

from src.staffing_ops.staffing_ops.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
