"""Similar-product search over a mock catalog.

There is no product index behind this yet. Results are generated from a seed
derived from the query (item id or image bytes), so the same query returns the
same products, then filtered and sorted the way a real search backend would be.
"""
import hashlib
import random
from dataclasses import dataclass
from typing import List, Literal, Optional

from lookmate.schemas.common import CamelModel

CATEGORIES = ["top", "bottom", "outer", "onepiece", "shoes", "accessory"]
BRANDS = ["Uniqlo", "Zara", "H&M", "Musinsa", "Nike", "Adidas", "COS", "Everlane"]
PRODUCT_TAGS = ["popular", "best", "new"]

SortBy = Literal["recommend", "priceAsc", "priceDesc", "sales"]


class Product(CamelModel):
    id: str
    name: str
    brand: Optional[str] = None
    thumbnail_url: str
    product_url: str
    price: int
    currency: Literal["KRW"] = "KRW"
    category: Optional[str] = None
    similarity_score: Optional[float] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    sales_volume_score: Optional[float] = None
    tags: List[str] = []


@dataclass(frozen=True)
class ProductSearchOptions:
    category: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    sort_by: SortBy = "recommend"
    limit: int = 12


def seed_for(*parts: str) -> int:
    digest = hashlib.sha256("|".join(parts).encode()).hexdigest()
    return int(digest[:16], 16)


def generate_products(seed: int, count: int, base_category: Optional[str] = None) -> list[Product]:
    rng = random.Random(seed)
    out = []
    for i in range(count):
        category = base_category or rng.choice(CATEGORIES)
        brand = rng.choice(BRANDS)
        out.append(
            Product(
                id=f"product-{seed % 100000:05d}-{i}",
                name=f"{brand} {category} {i + 1}",
                brand=brand,
                thumbnail_url=f"https://via.placeholder.com/300x400/4F46E5/FFFFFF?text={category}+{i + 1}",
                product_url=f"https://example.com/product/{seed % 100000:05d}-{i + 1}",
                price=rng.randint(20000, 170000),
                category=category,
                similarity_score=round(rng.random() * 0.5 + 0.5, 4),
                rating=round(rng.random() * 2 + 3, 2),
                review_count=rng.randint(0, 999),
                sales_volume_score=round(rng.random() * 100, 2),
                tags=PRODUCT_TAGS[: rng.randint(1, len(PRODUCT_TAGS))],
            )
        )
    return out


def sort_products(products: list[Product], sort_by: SortBy) -> list[Product]:
    if sort_by == "priceAsc":
        return sorted(products, key=lambda p: p.price)
    if sort_by == "priceDesc":
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort_by == "sales":
        return sorted(products, key=lambda p: p.sales_volume_score or 0, reverse=True)
    return sorted(products, key=lambda p: p.similarity_score or 0, reverse=True)


def filter_products(products: list[Product], opts: ProductSearchOptions) -> list[Product]:
    out = products
    if opts.category:
        out = [p for p in out if p.category == opts.category]
    if opts.min_price is not None:
        out = [p for p in out if p.price >= opts.min_price]
    if opts.max_price is not None:
        out = [p for p in out if p.price <= opts.max_price]
    return out


def search_similar(seed: int, base_category: Optional[str], opts: ProductSearchOptions) -> list[Product]:
    products = generate_products(seed, opts.limit, base_category)
    return sort_products(filter_products(products, opts), opts.sort_by)


def detect_category(seed: int) -> str:
    return CATEGORIES[seed % len(CATEGORIES)]
