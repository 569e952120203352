from pathlib import Path

TEMPLATES_DIR = str(Path(__file__).resolve().parent / "templates")
