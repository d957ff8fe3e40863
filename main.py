import os

import uvicorn

from cnr.api import app

if __name__ == "__main__":
    uvicorn.run(app, host=os.getenv("CNR_HOST", "0.0.0.0"), port=int(os.getenv("CNR_PORT", "8000")))
