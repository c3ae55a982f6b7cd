from bs4 import BeautifulSoup

from catalog_enrich.config import DEFAULT_IMAGE_SELECTORS
from catalog_enrich.content import (
    discover_product_links,
    element_description,
    extract_image_urls,
    extract_product_description,
    extract_product_name,
    extract_with_ancestors,
)

BASE = "https://shop.example/catalogo/"


def soup_of(html):
    return BeautifulSoup(html, "html.parser")


def test_resolves_relative_and_protocol_relative_urls():
    soup = soup_of(
        '<div><img src="/img/a.jpg"><img src="b.png"><img src="//cdn.example/c.jpg"></div>'
    )
    urls = extract_image_urls(soup.div, BASE, DEFAULT_IMAGE_SELECTORS)
    assert urls == [
        "https://shop.example/img/a.jpg",
        "https://shop.example/catalogo/b.png",
        "https://cdn.example/c.jpg",
    ]


def test_lazy_attributes_and_background_images():
    soup = soup_of(
        "<div>"
        '<img src="/img/placeholder.gif" data-src="/img/lazy.jpg">'
        '<img data-lazy-src="/img/lazier.jpg">'
        "<span style=\"background-image: url('/img/bg.jpg')\"></span>"
        "</div>"
    )
    urls = extract_image_urls(soup.div, BASE, DEFAULT_IMAGE_SELECTORS)
    assert urls == [
        "https://shop.example/img/lazy.jpg",
        "https://shop.example/img/lazier.jpg",
        "https://shop.example/img/bg.jpg",
    ]


def test_never_returns_data_or_base64_urls():
    soup = soup_of(
        "<div>"
        '<img src="data:image/png;base64,iVBORw0KGgo=">'
        '<img src="https://cdn.example/base64/x.jpg">'
        '<img src="/img/empty.png">'
        '<img src="/img/real.jpg">'
        "</div>"
    )
    urls = extract_image_urls(soup.div, BASE, DEFAULT_IMAGE_SELECTORS)
    assert urls == ["https://shop.example/img/real.jpg"]
    assert not any(url.startswith("data:") or "base64" in url for url in urls)


def test_resolved_url_containing_base64_is_dropped():
    soup = soup_of('<div><img src="a.jpg"></div>')
    assert extract_image_urls(soup.div, "https://shop.example/base64/", DEFAULT_IMAGE_SELECTORS) == []


def test_deduplicates_in_insertion_order():
    soup = soup_of(
        '<div class="product-card"><picture><img src="/a.jpg"></picture>'
        '<div class="product-image"><img src="/b.jpg"></div><img src="/a.jpg"></div>'
    )
    urls = extract_image_urls(soup, BASE, DEFAULT_IMAGE_SELECTORS)
    assert urls == ["https://shop.example/a.jpg", "https://shop.example/b.jpg"]


def test_invalid_url_is_skipped():
    soup = soup_of('<div><img src="http://[::1"><img src="/ok.jpg"><img src="mailto:x@y"></div>')
    assert extract_image_urls(soup.div, BASE, DEFAULT_IMAGE_SELECTORS) == ["https://shop.example/ok.jpg"]


def test_falls_back_to_nearest_ancestor_with_images():
    soup = soup_of(
        '<section><img src="/far.jpg">'
        '<div class="card"><img src="/near.jpg"><p><b id="t">Naipes</b></p></div>'
        "</section>"
    )
    node = soup.find(id="t")
    assert extract_image_urls(node, BASE, DEFAULT_IMAGE_SELECTORS) == []
    assert extract_with_ancestors(node, BASE, DEFAULT_IMAGE_SELECTORS) == [
        "https://shop.example/near.jpg"
    ]


def test_ancestor_depth_is_bounded():
    soup = soup_of('<div><img src="/far.jpg"><p><i><b id="t">Naipes</b></i></p></div>')
    node = soup.find(id="t")
    assert extract_with_ancestors(node, BASE, DEFAULT_IMAGE_SELECTORS, depth=2) == []
    assert extract_with_ancestors(node, BASE, DEFAULT_IMAGE_SELECTORS, depth=3) == [
        "https://shop.example/far.jpg"
    ]


def test_product_name_prefers_product_heading():
    soup = soup_of('<h1>Tienda</h1><div class="product-title"><h1> Naipes  Españoles </h1></div>')
    assert extract_product_name(soup) == "Naipes Españoles"


def test_product_name_falls_back_to_page_title():
    html = "<html><head><title>Naipes Españoles | Tienda</title></head><body><p>x</p></body></html>"
    assert "Naipes" in extract_product_name(soup_of(html), html)


def test_product_description_sources():
    soup = soup_of('<div class="product-description">Mazo de 50 cartas ilustradas.</div>')
    assert extract_product_description(soup) == "Mazo de 50 cartas ilustradas."

    soup = soup_of('<meta name="description" content="Agenda semanal 2025"><p>x</p>')
    assert extract_product_description(soup) == "Agenda semanal 2025"

    soup = soup_of("<main>" + "palabra " * 100 + "</main>")
    assert len(extract_product_description(soup, max_chars=300)) <= 300


def test_element_description_collapses_whitespace():
    soup = soup_of("<div>\n  Naipes\n  <span>$20</span>\n</div>")
    assert element_description(soup.div) == "Naipes $20"


def test_discovers_first_product_links():
    items = "".join(
        f'<a href="/productos/item-{n}/">Item {n}</a>' for n in range(7)
    )
    soup = soup_of(f'<a href="/productos/item-0/">Item 0</a>{items}<a href="/productos/x/"></a>')
    links = discover_product_links(soup, "https://shop.example/search/?q=item", limit=5)
    assert links[0] == ("Item 0", "https://shop.example/productos/item-0/")
    assert len(links) == 5
    assert len({url for _, url in links}) == 5


def test_no_product_links():
    assert discover_product_links(soup_of("<a href='/about'>About</a>"), BASE) == []
