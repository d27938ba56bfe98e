"""Roundtable — dev launcher. Starts the API server with auto-reload."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "13015"))


def main():
    parser = argparse.ArgumentParser(description="Roundtable dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create demo discussion data")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "info"))
    args = parser.parse_args()

    if args.data_dir:
        # The app factory reads DATA_DIR, also in the reloader's subprocess.
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())

    if args.demo:
        from roundtable.demo import create_demo_data
        from roundtable.storage import Storage
        create_demo_data(Storage(args.data_dir or ROOT / "data"))

    print(f"Starting roundtable on http://localhost:{PORT} ...")
    uvicorn.run(
        "roundtable.app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
