"""Translation provider implementations.

Importing this package registers every provider with ``TransInterface``:

- BuiltInTranslation (``built_in``): keyless Google web endpoint, the automatic-selection fallback.
- GoogleCloudTranslation (``google``): Google Cloud Translation v2.
- DeeplTranslation (``deepl``): DeepL API.
- MicrosoftTranslation (``microsoft``): Azure AI Translator v3.
- TencentTranslation (``tencent``): Tencent Cloud Machine Translation.
"""

from core.trans.engines.http_client import EngineHttpClient
from core.trans.engines.trans_builtin import BuiltInTranslation, GoogleWebClient
from core.trans.engines.trans_deepl import DeeplTranslation
from core.trans.engines.trans_google_cloud import GoogleCloudTranslation
from core.trans.engines.trans_microsoft import MicrosoftTranslation
from core.trans.engines.trans_tencent import TencentTranslation

__all__: list[str] = [
    "BuiltInTranslation",
    "DeeplTranslation",
    "EngineHttpClient",
    "GoogleCloudTranslation",
    "GoogleWebClient",
    "MicrosoftTranslation",
    "TencentTranslation",
]
