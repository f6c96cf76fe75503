import logging

from catalog_chat.catalog import ProductRecord, format_product_fallback_text
from catalog_chat.response_processor import (
    ImageReference,
    ResponseProcessor,
    extract_image_url,
    format_final_response,
    proxied_image_url,
    strip_image_line,
)


def test_extract_marker_image():
    image = extract_image_url("📸 https://x.com/a.png\nhello")
    assert image.url == "https://x.com/a.png"
    assert image.full_match == "📸 https://x.com/a.png"
    assert image.notation == "marker"


def test_extract_markdown_image():
    image = extract_image_url("Veja: ![Mouse Gamer](https://cdn.loja.com/m.jpg) abaixo")
    assert image.url == "https://cdn.loja.com/m.jpg"
    assert image.full_match == "![Mouse Gamer](https://cdn.loja.com/m.jpg)"
    assert image.notation == "bracket"


def test_extract_returns_first_occurrence():
    text = "![a](https://x.com/1.png)\n📸 https://x.com/2.png"
    assert extract_image_url(text).url == "https://x.com/1.png"


def test_extract_without_image():
    assert extract_image_url("sem imagem aqui") is None
    assert extract_image_url("") is None
    assert extract_image_url("📸 ftp://x.com/a.png") is None


def test_proxied_url_encodes_like_uri_component():
    assert proxied_image_url("https://x.com/a.png") == "/proxy-image?url=https%3A%2F%2Fx.com%2Fa.png"
    assert proxied_image_url("https://x.com/a b.png?s=1&t=(2)") == (
        "/proxy-image?url=https%3A%2F%2Fx.com%2Fa%20b.png%3Fs%3D1%26t%3D(2)"
    )


def test_final_response_with_marker_image():
    text = "📸 https://x.com/a.png\nhello"
    out = format_final_response(text, extract_image_url(text))
    assert out.startswith('<div style="text-align: center; margin-bottom: 10px;">')
    assert '<img src="/images/informatica_logo.png" alt="Cia da Informática Logo"' in out
    assert '<img src="/proxy-image?url=https%3A%2F%2Fx.com%2Fa.png" alt="Imagem do Produto"' in out
    assert out.endswith('<div class="message-text-content">hello</div>')
    assert "📸" not in out


def test_final_response_without_image_only_wraps_text():
    out = format_final_response("linha 1\nlinha 2", None)
    assert out == '<div class="message-text-content">linha 1<br>linha 2</div>'


def test_image_line_removed_with_surrounding_text_on_same_line():
    text = "Olha só ![foto](https://x.com/a.png) que legal\nPreço: R$ 10"
    cleaned = strip_image_line(text, extract_image_url(text))
    assert cleaned == "Preço: R$ 10"


def test_custom_display_settings():
    processor = ResponseProcessor(logo_url="/logo.svg", logo_alt='Loja "X"', image_alt="Foto", proxy_path="/img")
    processed = processor.process("📸 https://x.com/a.png\nok")
    assert '<img src="/logo.svg" alt="Loja &quot;X&quot;"' in processed.content
    assert '<img src="/img?url=https%3A%2F%2Fx.com%2Fa.png" alt="Foto"' in processed.content


def test_crlf_image_line_is_removed_whole(caplog):
    text = "Veja: 📸 https://x.com/a.png\r\nhello"
    image = extract_image_url(text)
    with caplog.at_level(logging.WARNING, logger="catalog_chat.response_processor"):
        cleaned = strip_image_line(text, image)
    assert cleaned == "hello"
    assert "Precise line removal failed" not in caplog.text


def test_marker_split_across_lines_is_removed():
    text = "📸\nhttps://x.com/a.png\nhello"
    image = extract_image_url(text)
    assert image.full_match == "📸\nhttps://x.com/a.png"
    assert strip_image_line(text, image) == "hello"


def test_broad_removal_when_reference_is_not_in_text(caplog):
    # reference taken from an earlier version of the text
    stale = ImageReference(url="https://x.com/old.png", full_match="📸 https://x.com/old.png", notation="marker")
    text = "📸 https://x.com/a.png\nhello\n![b](https://x.com/b.png)"
    with caplog.at_level(logging.WARNING, logger="catalog_chat.response_processor"):
        cleaned = strip_image_line(text, stale)
    assert cleaned == "hello"
    assert "Precise line removal failed" in caplog.text


def test_line_removal_does_not_warn_on_success(caplog):
    text = "📸 https://x.com/a.png\nhello"
    with caplog.at_level(logging.WARNING, logger="catalog_chat.response_processor"):
        assert strip_image_line(text, extract_image_url(text)) == "hello"
    assert "Precise line removal failed" not in caplog.text


def test_processor_result():
    processed = ResponseProcessor().process("![p](https://x.com/p.webp)\nDescrição")
    assert processed.is_html is True
    assert processed.image_url == "https://x.com/p.webp"
    assert processed.content.endswith('<div class="message-text-content">Descrição</div>')


def test_processor_handles_empty_text():
    processed = ResponseProcessor().process("")
    assert processed.image_url is None
    assert processed.content == '<div class="message-text-content"></div>'


def test_fallback_product_text_round_trips_through_processor():
    product = ProductRecord.from_dict({"nome": "Mouse", "sku": "M1", "imagem": "https://x.com/m.png"})
    processed = ResponseProcessor().process(format_product_fallback_text(product))
    assert processed.image_url == "https://x.com/m.png"
    assert "/proxy-image?url=https%3A%2F%2Fx.com%2Fm.png" in processed.content
    assert '<div class="message-text-content">**Nome:** Mouse<br>**SKU:** M1</div>' in processed.content
