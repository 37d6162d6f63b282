from grabtest.configs import settings
from grabtest.main import app

# Run the synthetic content server
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
