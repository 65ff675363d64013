import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    # Single worker: the SupabaseService and its client live in-process and
    # are built once by the app lifespan.
    workers = int(os.environ.get("WEB_CONCURRENCY", 1))
    uvicorn.run(
        "khilonjiya.main:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
    )
