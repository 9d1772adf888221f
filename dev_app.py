import os

from dotenv import load_dotenv
from biopush import create_app

# Load environment variables from the .env file
load_dotenv()

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 57575))
    app.run(host=os.getenv("HOST", "0.0.0.0"), debug=app.config.get("DEBUG", False), port=port)
