from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from api import (DEFAULT_MODEL, GenerationConfig, SketchGateway, build_edit_prompt,
                 build_generation_prompt, extract_image, list_image_models)
from artifact import ImageArtifact
from errors import MalformedInputError, MissingApiKeyError, NoCandidateError, NoImageError
from fakes import FakeClient, empty_response, image_part, response_with, text_part


SOURCE_URI = "data:image/jpeg;base64,/9j/AA=="


def test_generate_sends_sketch_prompt_and_aspect_ratio():
    client = FakeClient(response_with(image_part(b"PNGDATA")))
    gateway = SketchGateway(client=client)

    result = gateway.generate("a lighthouse at dusk", GenerationConfig("16:9"))

    assert result == ImageArtifact("image/png", b"PNGDATA")
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call['model'] == DEFAULT_MODEL
    assert call['config'].image_config.aspect_ratio == "16:9"
    assert len(call['contents']) == 1
    prompt = call['contents'][0].text
    assert "a lighthouse at dusk" in prompt
    assert "graphite/charcoal" in prompt
    assert "photorealistic color" in prompt


def test_generate_defaults_to_square():
    client = FakeClient(response_with(image_part()))
    SketchGateway(client=client).generate("cat")
    assert client.calls[0]['config'].image_config.aspect_ratio == "1:1"


def test_generate_uses_configured_model():
    client = FakeClient(response_with(image_part()))
    SketchGateway(client=client, model="gemini-3-pro-image-preview").generate("cat")
    assert client.calls[0]['model'] == "gemini-3-pro-image-preview"


def test_leading_text_part_is_ignored():
    # raw wire shape: base64 text rather than decoded bytes
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[
        SimpleNamespace(text="ok", inline_data=None),
        SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type="image/png", data="QQ==")),
    ]))])

    result = extract_image(response)

    assert result.data_uri == "data:image/png;base64,QQ=="


def test_first_image_part_wins():
    response = response_with(
        text_part("Here you go"),
        image_part(b"first", "image/jpeg"),
        image_part(b"second", "image/png"),
    )
    result = extract_image(response)
    assert result == ImageArtifact("image/jpeg", b"first")


def test_only_first_candidate_is_examined():
    response = response_with(text_part("no picture"))
    response.candidates.append(response_with(image_part()).candidates[0])
    with pytest.raises(NoImageError):
        extract_image(response)


def test_missing_mime_type_defaults_to_png():
    response = response_with(image_part(b"A", mime_type=None))
    assert extract_image(response).mime_type == "image/png"


def test_empty_candidates_raise_no_candidate():
    client = FakeClient(empty_response())
    with pytest.raises(NoCandidateError):
        SketchGateway(client=client).generate("cat")


def test_missing_candidates_raise_no_candidate():
    with pytest.raises(NoCandidateError):
        extract_image(SimpleNamespace(candidates=None))


def test_text_only_candidate_raises_no_image():
    client = FakeClient(response_with(text_part("I can't do that")))
    with pytest.raises(NoImageError) as excinfo:
        SketchGateway(client=client).generate("cat")
    assert excinfo.value.model_text == "I can't do that"
    assert "I can't do that" in str(excinfo.value)


def test_candidate_without_content_raises_no_image():
    response = SimpleNamespace(candidates=[SimpleNamespace(content=None)])
    with pytest.raises(NoImageError):
        extract_image(response)


def test_edit_sends_instruction_and_reference_image():
    client = FakeClient(response_with(text_part("done"), image_part(b"edited")))
    gateway = SketchGateway(client=client)

    result = gateway.edit(SOURCE_URI, "add smoke to the chimney")

    assert result == ImageArtifact("image/png", b"edited")
    call = client.calls[0]
    assert 'config' not in call
    instruction, reference = call['contents']
    assert "add smoke to the chimney" in instruction.text
    assert "Do not convert it to a photograph" in instruction.text
    assert reference.inline_data.mime_type == "image/jpeg"
    assert reference.inline_data.data == ImageArtifact.from_data_uri(SOURCE_URI).data


def test_edit_accepts_artifact():
    client = FakeClient(response_with(image_part(b"edited")))
    source = ImageArtifact("image/png", b"original")
    SketchGateway(client=client).edit(source, "darker sky")
    assert client.calls[0]['contents'][1].inline_data.data == b"original"


@pytest.mark.parametrize("source", [
    "not-a-data-url",
    "data:text/plain;base64,QQ==",
    "data:image/png,QQ==",
    "data:image/png;base64,***",
])
def test_malformed_source_never_dispatches(source):
    client = FakeClient(response_with(image_part()))
    with pytest.raises(MalformedInputError):
        SketchGateway(client=client).edit(source, "anything")
    assert client.calls == []


def test_edit_surfaces_no_candidate():
    client = FakeClient(empty_response())
    with pytest.raises(NoCandidateError):
        SketchGateway(client=client).edit(SOURCE_URI, "anything")


def test_transport_errors_propagate_unchanged():
    failure = genai_errors.APIError(503, {"error": {"message": "overloaded", "status": "UNAVAILABLE"}})
    client = FakeClient(failure)
    with pytest.raises(genai_errors.APIError) as excinfo:
        SketchGateway(client=client).generate("cat")
    assert excinfo.value is failure


def test_missing_api_key():
    gateway = SketchGateway(api_key=None)
    with pytest.raises(MissingApiKeyError):
        gateway.generate("cat")


def test_unsupported_aspect_ratio_is_rejected():
    with pytest.raises(ValueError):
        GenerationConfig("2:1")


def test_prompt_builders_embed_user_text():
    assert "a fox" in build_generation_prompt("a fox")
    assert "make it rain" in build_edit_prompt("make it rain")
    assert "sketch style" in build_edit_prompt("make it rain")


def test_list_image_models_prefers_default():
    listed = [
        SimpleNamespace(name="models/gemini-2.5-flash"),
        SimpleNamespace(name="models/imagen-4.0-generate-001"),
        SimpleNamespace(name="models/gemini-2.5-flash-image"),
        SimpleNamespace(name="models/text-embedding-004"),
    ]
    client = FakeClient(listed=listed)

    assert list_image_models(client) == [
        "models/gemini-2.5-flash-image",
        "models/imagen-4.0-generate-001",
    ]


@pytest.mark.parametrize("payload", ["QQ=", "not base64!"])
def test_undecodable_payload_raises_no_image(payload):
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[
        SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type="image/png", data=payload)),
    ]))])
    with pytest.raises(NoImageError, match="undecodable"):
        extract_image(response)


def test_string_payload_without_mime_type_defaults_to_png():
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[
        SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type=None, data="QQ==")),
    ]))])
    assert extract_image(response) == ImageArtifact("image/png", b"A")
