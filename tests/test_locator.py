from bs4 import BeautifulSoup

from catalog_enrich.locator import iter_candidates, locate_product

LISTING = """
<html><body>
  <header><nav><a href="/">Inicio</a></nav></header>
  <div class="grid">
    <div class="item"><img src="/img/naipes.jpg"><h3>Naipes</h3><span>$20</span></div>
    <div class="item"><img src="/img/libreta.jpg"><h3>Libreta Parques Nacionales</h3></div>
  </div>
</body></html>
"""


def soup_of(html):
    return BeautifulSoup(html, "html.parser")


def test_locates_best_element():
    outcome = locate_product("Libreta Parques Nacionales", soup_of(LISTING), 0.5)
    assert outcome.match is not None
    # The card and its heading score the same; the card comes first.
    assert outcome.match.element.name == "div"
    assert outcome.match.element["class"] == ["item"]
    assert outcome.match.element.get_text() == "Libreta Parques Nacionales"


def test_match_score_is_clamped_but_best_score_is_raw():
    outcome = locate_product("Naipes", soup_of(LISTING), 0.5)
    assert outcome.match.score == 1.0
    assert outcome.best_score > 1.0


def test_not_found_reports_best_score():
    outcome = locate_product("Agenda 2025", soup_of(LISTING), 0.5)
    assert outcome.match is None
    assert 0.0 <= outcome.best_score <= 0.5


def test_score_equal_to_threshold_is_not_a_match():
    soup = soup_of("<body><p>abcx</p></body>")
    outcome = locate_product("abcd", soup, 0.75, min_chars=1)
    assert outcome.match is None
    assert outcome.best_score == 0.75
    assert locate_product("abcd", soup, 0.74, min_chars=1).match is not None


def test_first_element_wins_ties():
    soup = soup_of("<body><div><span>Naipes</span></div></body>")
    outcome = locate_product("Naipes", soup, 0.5)
    assert outcome.match.element.name == "div"


def test_text_window_excludes_large_containers_and_short_leaves():
    long_text = "Naipes " + "x" * 600
    soup = soup_of(f"<body><section>{long_text}</section><b>abc</b><p>Naipes</p></body>")
    names = [element.name for element in iter_candidates(soup, 5, 500)]
    assert names == ["p"]


def test_document_without_body():
    soup = soup_of("<p>Naipes</p>")
    assert locate_product("Naipes", soup, 0.5).match.element.name == "p"
