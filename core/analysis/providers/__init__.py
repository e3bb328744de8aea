"""Provider adapter implementations.

Importing this package registers every adapter with ``ProviderInterface.registered``.

Modules:
- DeeplProvider: DeepL SDK translation.
- GoogleCloudProvider: Google Cloud Translation v2 translation.
- AzureTranslatorProvider: Azure AI Translator REST translation.
- LibreTranslateProvider: LibreTranslate REST translation.
- AzureTextProvider: Azure AI Language sentiment mapped to emotions.
- GoogleNaturalLanguageProvider: Google Natural Language sentiment mapped to emotions.
- OpenAIEmotionProvider: OpenAI chat-completions emotion analysis.
"""

from core.analysis.providers.emotion_azure import AzureTextProvider
from core.analysis.providers.emotion_google_nl import GoogleNaturalLanguageProvider
from core.analysis.providers.emotion_openai import OpenAIEmotionProvider
from core.analysis.providers.http_base import HttpProvider
from core.analysis.providers.trans_azure import AzureTranslatorProvider
from core.analysis.providers.trans_deepl import DeeplProvider
from core.analysis.providers.trans_google_cloud import GoogleCloudProvider
from core.analysis.providers.trans_libre import LibreTranslateProvider

__all__: list[str] = [
    "AzureTextProvider",
    "AzureTranslatorProvider",
    "DeeplProvider",
    "GoogleCloudProvider",
    "GoogleNaturalLanguageProvider",
    "HttpProvider",
    "LibreTranslateProvider",
    "OpenAIEmotionProvider",
]
