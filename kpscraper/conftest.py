"""
Pytest fixtures: an in-memory browsing session serving fixed HTML pages.
"""
import asyncio

import pytest
from bs4 import BeautifulSoup

from kpscraper.categories import CategoryIdMapping
from kpscraper.config import Config
from kpscraper.errors import ExtractionError, NavigationError


BASE = "https://www.kupujemprodajem.com"

HOME_HTML = """
<html><body>
  <nav class="CategoryList_list__a7SOH">
    <a class="CategoryList_name__ES_NA" href="/alati-i-orudja/kategorija/2">Alati i oruđa</a>
    <a class="CategoryList_name__ES_NA" href="/automobili/kategorija/2013">Automobili</a>
    <a class="CategoryList_name__ES_NA" href="/knjige/kategorija/7"> Knjige </a>
    <a class="CategoryList_name__ES_NA" href="/prazno/kategorija/99"></a>
  </nav>
</body></html>
"""

ALATI_HTML = """
<html><body>
  <div class="CategoryBox_box__1">
    <a class="CategoryBox_name__54eU9" href="/alati-i-orudja/aku-alati/grupa/2/1191">Aku alati</a>
    <a class="CategoryBox_name__54eU9" href="/alati-i-orudja/rucni-alati/grupa/2/1192">Ručni alati</a>
  </div>
</body></html>
"""

AUTOMOBILI_HTML = """
<html><body>
  <a class="CategoryBox_name__54eU9" href="/automobili/volkswagen/grupa/2013/2050">Volkswagen</a>
</body></html>
"""

# Category page that never renders its sub-category boxes
KNJIGE_HTML = "<html><body><div class='Loader_spinner__x'></div></body></html>"


def ad_item(href=None, title=None, price=None, location=None, image=None, description=None):
    """One search-results entry; any part left as None is omitted."""
    parts = ['<article class="AdItem_adHolder__NoNLJ">']
    if image is not None:
        parts.append(f'<div class="AdItem_imageHolder__LZaKa"><img src="{image}"></div>')
    parts.append('<div class="AdItem_adTextHolder__Fmra9">')
    name = f'<div class="AdItem_name__RhGAZ">{title}</div>' if title is not None else ""
    if href is not None:
        parts.append(f'<a href="{href}">{name}</a>')
    else:
        parts.append(name)
    if description is not None:
        parts.append(f'<div class="AdItem_descriptionHolder__kffJU"><p>{description}</p></div>')
    parts.append("</div>")
    if location is not None:
        parts.append(f'<div class="AdItem_originAndPromoLocation__q1"><p>{location}</p></div>')
    if price is not None:
        parts.append(f'<div class="AdItem_price__jUgxi">{price}</div>')
    parts.append("</article>")
    return "".join(parts)


def search_page(*items):
    return "<html><body><section class='Search_list__1'>" + "".join(items) + "</section></body></html>"


MAKITA = "/alati-i-orudja/aku-alati/aku-busilica-makita/oglas/148811234"
BOSCH = "/alati-i-orudja/aku-alati/bosch-srafilica/oglas/148811299"
KLESTA = "/alati-i-orudja/rucni-alati/klesta-knipex/oglas/148900001"
GOLF = "/automobili/volkswagen/golf-7-2-0-tdi/oglas/150000001"
PASSAT = "/automobili/volkswagen/passat-b8/oglas/150000002"

ALATI_PAGE_1 = search_page(
    ad_item(
        href=MAKITA,
        title="Aku bušilica Makita",
        price="8.500 din",
        location="Novi Sad",
        image="https://images.kupujemprodajem.com/photos/oglasi/4/81/148811234/tn-1.jpg",
        description="Malo korišćena, dve baterije",
    ),
    ad_item(title="Oglas bez linka", price="1.000 din", location="Beograd"),
    ad_item(href=BOSCH, title="Bosch šrafilica", price="Dogovor", description="Ispravna"),
)

ALATI_PAGE_2 = search_page(
    # Shifted down from page 1 while paging
    ad_item(href=BOSCH, title="Bosch šrafilica", price="Dogovor", description="Ispravna"),
    ad_item(
        href=KLESTA,
        title="Klešta Knipex",
        price="2.400 din",
        location="Niš",
        image="/photos/oglasi/4/89/148900001/tn-1.jpg",
        description="Nova",
    ),
)

EMPTY_SEARCH = "<html><body><div class='Search_noResults__x'>Nema oglasa</div></body></html>"

MAKITA_DETAIL = """
<html><body>
  <div class="AdViewInfo_adInfoHolder__f9"><h1>Aku bušilica Makita</h1></div>
  <div class="AdViewGallery_galleryHolder__k2">
    <img src="https://images.kupujemprodajem.com/photos/oglasi/4/81/148811234/1.jpg">
    <img src="https://images.kupujemprodajem.com/photos/oglasi/4/81/148811234/2.jpg">
    <img data-src="/photos/oglasi/4/81/148811234/3.jpg">
  </div>
  <div class="AdViewDescription_adViewDescription__z">
    <section class="AdViewDescription_descriptionHolder__9a">
      Bušilica je u odličnom stanju.
      Dve baterije 18V i punjač.
    </section>
  </div>
  <div class="UserSummary_userName__k1">Marko Alatić</div>
</body></html>
"""

BOSCH_DETAIL = """
<html><body>
  <div class="AdViewInfo_adInfoHolder__f9"><h1>Bosch šrafilica</h1></div>
</body></html>
"""

GOLF_DETAIL = """
<html><body>
  <div class="AdViewInfo_adInfoHolder__f9">
    <h1>Golf 7 2.0 TDI</h1>
    <table>
      <tr><td>Godište:</td><td>2016.</td><td>Kilometraža:</td><td>180.000 km</td></tr>
      <tr><td>Gorivo:</td><td>Dizel</td><td>Menjač:</td></tr>
    </table>
  </div>
  <div class="AdViewGallery_galleryHolder__k2">
    <img src="https://images.kupujemprodajem.com/photos/oglasi/5/00/150000001/1.jpg">
    <img src="https://images.kupujemprodajem.com/photos/oglasi/5/00/150000001/2.jpg">
  </div>
  <div class="AdViewDescription_adViewDescription__z">
    <section class="AdViewDescription_descriptionHolder__9a">Prvi vlasnik, servisna knjiga.</section>
    <section class="AdViewDescription_descriptionHolder__9a">
      <h3>Oprema</h3>
      <ul><li>ABS</li><li>Klima</li><li> </li><li>Navigacija</li></ul>
    </section>
    <section class="AdViewDescription_descriptionHolder__9a">
      <h3>Stanje</h3>
      <ul><li>Nije registrovan</li><li>Oštećen branik</li></ul>
    </section>
  </div>
  <div class="UserSummary_userName__k1">Auto Plac Centar</div>
</body></html>
"""

# Vehicle page rendered without its info block and characteristics table
GOLF_DETAIL_NO_INFO = """
<html><body>
  <div class="AdViewGallery_galleryHolder__k2">
    <img src="https://images.kupujemprodajem.com/photos/oglasi/5/00/150000001/1.jpg">
    <img src="https://images.kupujemprodajem.com/photos/oglasi/5/00/150000001/2.jpg">
  </div>
  <div class="AdViewDescription_adViewDescription__z">
    <section class="AdViewDescription_descriptionHolder__9a">Prvi vlasnik, servisna knjiga.</section>
  </div>
  <div class="UserSummary_userName__k1">Auto Plac Centar</div>
</body></html>
"""

AUTOMOBILI_PAGE_1 = search_page(
    ad_item(href=GOLF, title="Golf 7 2.0 TDI", price="11.500 €", location="Kragujevac"),
    ad_item(href=PASSAT, title="Passat B8", price="15.900 €", location="Beograd"),
)

PAGES = {
    BASE + "/": HOME_HTML,
    BASE + "/alati-i-orudja/kategorija/2": ALATI_HTML,
    BASE + "/automobili/kategorija/2013": AUTOMOBILI_HTML,
    BASE + "/knjige/kategorija/7": KNJIGE_HTML,
    BASE + "/alati-i-orudja/pretraga?categoryId=2&page=1": ALATI_PAGE_1,
    BASE + "/alati-i-orudja/pretraga?categoryId=2&page=2": ALATI_PAGE_2,
    BASE + "/alati-i-orudja/pretraga?categoryId=2&page=3": EMPTY_SEARCH,
    BASE + "/aku-alati/pretraga?categoryId=1191&page=1": search_page(
        ad_item(href=MAKITA, title="Aku bušilica Makita", price="8.500 din"),
    ),
    BASE + "/automobili/pretraga?categoryId=2013&page=1": AUTOMOBILI_PAGE_1,
    BASE + "/automobili/pretraga?categoryId=2013&page=2": EMPTY_SEARCH,
    BASE + MAKITA: MAKITA_DETAIL,
    BASE + BOSCH: BOSCH_DETAIL,
    BASE + KLESTA: MAKITA_DETAIL.replace("Marko Alatić", "Jovan"),
    BASE + GOLF: GOLF_DETAIL,
    # PASSAT has no detail page: it was taken down
}

CATEGORY_IDS = {
    "alati-i-orudja": 2,
    "aku-alati": 1191,
    "automobili": 2013,
    "knjige": 7,
}


class FakeSession:
    """
    ``BrowsingSession`` over a dict of url -> HTML, parsed with BeautifulSoup.

    Unknown URLs fail navigation like an HTTP 404. Selectors listed in
    ``broken`` raise ``ExtractionError`` as a detached element would.
    """

    def __init__(self, pages=None, broken=(), delay=0.0):
        self.pages = PAGES if pages is None else pages
        self.broken = set(broken)
        self.delay = delay
        self.url = None
        self.soup = None
        self.visited = []
        self.opened = []
        self.closed = []

    async def navigate(self, url, timeout_ms):
        self.visited.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if url not in self.pages:
            raise NavigationError(url, "HTTP 404")
        self.url = url
        self.soup = BeautifulSoup(self.pages[url], "html.parser")

    async def wait_for_ready(self, marker, timeout_ms):
        return self.soup is not None and self.soup.select_one(marker) is not None

    async def query_all(self, selector, root=None):
        self._check(selector)
        scope = root if root is not None else self.soup
        return scope.select(selector)

    async def query_one(self, selector, root=None):
        self._check(selector)
        scope = root if root is not None else self.soup
        return scope.select_one(selector)

    async def extract_text(self, handle):
        return handle.get_text()

    async def extract_attribute(self, handle, name):
        value = handle.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def open_isolated_context(self):
        ctx = FakeSession(self.pages, self.broken, self.delay)
        self.opened.append(ctx)
        return ctx

    async def close_context(self, ctx):
        self.closed.append(ctx)

    def _check(self, selector):
        if selector in self.broken:
            raise ExtractionError(f"element for {selector!r} is detached")


@pytest.fixture
def cfg():
    c = Config()
    c.BASE_URL = BASE
    c.SEARCH_PATH = "/{slug}/pretraga?categoryId={category_id}&page={page}"
    c.NAVIGATION_TIMEOUT_MS = 1000
    c.READY_TIMEOUT_MS = 100
    c.DETAIL_CONCURRENCY = 2
    c.CATEGORY_IDS_PATH = None
    return c


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def mapping():
    return CategoryIdMapping(CATEGORY_IDS)
