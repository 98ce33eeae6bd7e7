from google import genai
from google.genai import types

from .base import Responder

SYSTEM_PROMPT = "You are helpful assistant to a software engineer"


class GeminiResponder(Responder):
    name = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash-001") -> None:
        self.client = genai.Client(api_key=api_key)
        self.model = model

    async def respond(self, prompt: str) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                types.Content(role="user", parts=[types.Part.from_text(text=prompt)])
            ],
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_PROMPT,
            ),
        )
        return response.text or ""
