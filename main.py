#!/usr/bin/env python3
"""
dragonscale storyteller

A FastAPI application that turns uploaded PDF documents into illustrated
four phase stories (introduction, conflict, climax, resolution) using an
OpenAI compatible AI endpoint for analysis, narrative and images.

To start the server:
    python main.py
"""

import sys
from pathlib import Path

# add the project root to the python path so we can import src modules
sys.path.insert(0, str(Path(__file__).parent))

# start the fastapi server when this file is run
if __name__ == "__main__":
    import uvicorn
    # run the api app on port 8000 with auto-reload for development
    uvicorn.run("src.storyteller.api:app", host="0.0.0.0", port=8000, reload=True)
