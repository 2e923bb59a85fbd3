"""RPG Game Master dev launcher.

    python main.py                 API server with auto-reload
    python main.py --demo          wipe games and seed the demo games first
    python main.py --mcp           run the MCP tool server on stdio instead
"""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "13013"))


def main():
    parser = argparse.ArgumentParser(description="RPG Game Master dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create demo games")
    parser.add_argument("--mcp", action="store_true",
                        help="Serve the MCP tools over stdio instead of HTTP")
    parser.add_argument("--no-reload", action="store_true",
                        help="Disable auto-reload")
    args = parser.parse_args()

    data_dir = (args.data_dir or Path(os.getenv("DATA_DIR", ROOT / "data"))).resolve()
    # the app module reads DATA_DIR when uvicorn (re)imports it
    os.environ["DATA_DIR"] = str(data_dir)

    from gamemaster import storage
    storage.init_storage(data_dir)
    if args.demo:
        from gamemaster.demo import create_demo_data
        create_demo_data()
        print(f"Demo games written to {storage.games_dir()}")

    if args.mcp:
        from gamemaster.mcp_server import mcp
        mcp.run()
        return

    print(f"Starting API on http://localhost:{PORT} ...")
    uvicorn.run(
        "gamemaster.app:app",
        host=HOST,
        port=PORT,
        reload=not args.no_reload,
        reload_dirs=[str(ROOT / "gamemaster")],
    )


if __name__ == "__main__":
    main()
