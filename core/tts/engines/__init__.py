"""Text-to-speech engine implementations.

Concrete engines for the ``Interface`` contract: the on-device pyttsx3 engine and the engine for
remote synthesis services, with the OpenAI, Azure and Google Text-to-Speech services.

Modules:
- LocalEngine: Speaks with the voices installed on this machine.
- AITTSEngine: Plays audio synthesized by an ``AITTSService``.
- OpenAITTSService: OpenAI speech endpoint.
- AzureTTSService: Azure Cognitive Services speech endpoint.
- GoogleText2Speech: Google Text-to-Speech through gTTS.
"""

from core.tts.engines.ai_engine import AITTSEngine, AITTSService
from core.tts.engines.azure_service import AzureTTSService
from core.tts.engines.g_tts import GoogleText2Speech
from core.tts.engines.local import LocalEngine
from core.tts.engines.openai_service import OpenAITTSService

__all__: list[str] = [
    "AITTSEngine",
    "AITTSService",
    "AzureTTSService",
    "GoogleText2Speech",
    "LocalEngine",
    "OpenAITTSService",
]
