import sys

from google import genai

from api import list_image_models
from config import load_config

config = load_config()
if not config.api_key:
    sys.exit('GEMINI_API_KEY is not set')
client = genai.Client(api_key=config.api_key)
print('Image-capable models for this key:')
try:
    for name in list_image_models(client):
        marker = ' (configured)' if name.endswith(config.model) else ''
        print('-', name + marker)
except Exception as e:
    print('client.models.list() failed:', repr(e))
