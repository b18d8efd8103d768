"""
main.py: Server launcher and entry point.

Run this file to start the Exam Planner API:

    python main.py

This file does NOT contain application logic. See examplanner/main.py for
the FastAPI application and service wiring.

Direct uvicorn usage:
    uvicorn examplanner.main:app --reload
"""

from __future__ import annotations

import uvicorn


HOST = "127.0.0.1"
PORT = 8000


def main() -> None:
    """Start the Exam Planner API server."""
    print("=" * 60)
    print("  Exam Planner: date and seat assignment")
    print("=" * 60)
    print(f"  Server   : http://{HOST}:{PORT}")
    print(f"  API docs : http://{HOST}:{PORT}/docs")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    uvicorn.run(
        "examplanner.main:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
