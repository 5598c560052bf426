import binascii
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from google import genai
from google.genai import types

from artifact import DEFAULT_MIME_TYPE, ImageArtifact
from errors import MissingApiKeyError, NoCandidateError, NoImageError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"
ASPECT_RATIOS = ("1:1", "4:3", "3:4", "16:9", "9:16")


@dataclass(frozen=True)
class GenerationConfig:
    aspect_ratio: str = "1:1"

    def __post_init__(self):
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio: {self.aspect_ratio!r}")


def build_generation_prompt(prompt: str) -> str:
    return (
        f"Create a high-quality, realistic pencil sketch art of: {prompt}. "
        "The style should be detailed, monochromatic (graphite/charcoal on paper), "
        "with strong shading and artistic strokes. Do not include photorealistic color, "
        "keep it looking like a traditional sketch."
    )


def build_edit_prompt(instruction: str) -> str:
    return (
        f"Edit this sketch based on the following instruction: {instruction}. "
        "Maintain the realistic pencil sketch style consistently. "
        "Do not convert it to a photograph."
    )


def extract_image(response) -> ImageArtifact:
    """Return the first inline image of the first candidate in ``response``.

    Text parts are skipped. Any image parts after the first one are discarded.
    Raises NoCandidateError when there is no candidate and NoImageError when
    the candidate carries no inline data.
    """
    candidates = getattr(response, 'candidates', None)
    if not candidates:
        raise NoCandidateError("No image generated.")

    content = getattr(candidates[0], 'content', None)
    parts = getattr(content, 'parts', None) or []

    texts = []
    for part in parts:
        inline = getattr(part, 'inline_data', None)
        if inline is not None and getattr(inline, 'data', None):
            mime_type = getattr(inline, 'mime_type', None) or DEFAULT_MIME_TYPE
            data = inline.data
            # raw REST payloads carry base64 text, the SDK hands back bytes
            if isinstance(data, str):
                try:
                    return ImageArtifact.from_base64(data, mime_type)
                except (binascii.Error, ValueError):
                    raise NoImageError("Model response carried an undecodable image payload.")
            return ImageArtifact(mime_type=mime_type, data=bytes(data))
        text = getattr(part, 'text', None)
        if text:
            texts.append(text.strip())

    raise NoImageError(model_text=" ".join(t for t in texts if t))


def list_image_models(client) -> List[str]:
    """Names of the image-capable models visible to this client's API key."""
    candidate_models = []
    for m in client.models.list():
        name = getattr(m, 'name', None) or getattr(m, 'model', None) or str(m)
        ln = name.lower()
        if 'imagen' in ln or ('gemini' in ln and 'image' in ln):
            candidate_models.append(name)

    # Put the default model first, whether or not the name carries the models/ prefix
    for preferred in (f"models/{DEFAULT_MODEL}", DEFAULT_MODEL):
        if preferred in candidate_models:
            candidate_models.insert(0, candidate_models.pop(candidate_models.index(preferred)))
            break
    return candidate_models


class SketchGateway:
    """The only component that talks to the remote image model.

    Builds the request (instruction text plus optional reference image),
    dispatches it and decodes the response into an ImageArtifact. Transport
    errors from the SDK are not caught here.
    """

    def __init__(self, client=None, model: str = DEFAULT_MODEL, api_key: Optional[str] = None):
        self._client = client
        self.model = model
        self._api_key = api_key

    @property
    def client(self):
        if self._client is None:
            if not self._api_key:
                raise MissingApiKeyError("No GEMINI_API_KEY set")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def generate(self, prompt: str, config: Optional[GenerationConfig] = None) -> ImageArtifact:
        config = config or GenerationConfig()
        parts = [types.Part.from_text(text=build_generation_prompt(prompt))]
        request_config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=config.aspect_ratio),
        )
        logger.info("Generating sketch with %s (aspect ratio %s)", self.model, config.aspect_ratio)
        return self._dispatch(parts, request_config)

    def edit(self, source: Union[ImageArtifact, str], instruction: str) -> ImageArtifact:
        # Parse before touching the client so malformed input never reaches the network
        if not isinstance(source, ImageArtifact):
            source = ImageArtifact.from_data_uri(source)
        parts = [
            types.Part.from_text(text=build_edit_prompt(instruction)),
            types.Part.from_bytes(data=source.data, mime_type=source.mime_type),
        ]
        logger.info("Editing sketch with %s (source %s, %d bytes)",
                    self.model, source.mime_type, len(source.data))
        return self._dispatch(parts)

    def _dispatch(self, parts: Iterable[types.Part],
                  request_config: Optional[types.GenerateContentConfig] = None) -> ImageArtifact:
        kwargs = {'model': self.model, 'contents': list(parts)}
        if request_config is not None:
            kwargs['config'] = request_config
        response = self.client.models.generate_content(**kwargs)
        try:
            artifact = extract_image(response)
        except (NoCandidateError, NoImageError) as e:
            logger.warning("Unusable response from %s: %s", self.model, e)
            raise
        logger.info("Received %s image (%d bytes)", artifact.mime_type, len(artifact.data))
        return artifact
