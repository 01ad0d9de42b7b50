"""
main.py - Server launcher and entry point.

    python main.py

Starts the allocation API with uvicorn. The Streamlit dashboard is started
separately:

    streamlit run dashboard/app.py
"""

from __future__ import annotations

import uvicorn


HOST = "127.0.0.1"
PORT = 8000


def main() -> None:
    """Start the lab allocation API server."""
    print("=" * 60)
    print("  Lab Allocation Service")
    print("=" * 60)
    print(f"  Server   : http://{HOST}:{PORT}")
    print(f"  API docs : http://{HOST}:{PORT}/docs")
    print("  Dashboard: streamlit run dashboard/app.py")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
