"""Built-in sample directory used to seed the store and as the offline content fallback."""

from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta
from typing import Any

from .contracts import BlogPost, Business, Category, User
from .settings import settings
from .validators import slugify

STANDARD_HOURS: dict[str, dict[str, Any]] = {
    "monday": {"open": "09:00", "close": "22:00", "closed": False},
    "tuesday": {"open": "09:00", "close": "22:00", "closed": False},
    "wednesday": {"open": "09:00", "close": "22:00", "closed": False},
    "thursday": {"open": "09:00", "close": "22:00", "closed": False},
    "friday": {"open": "09:00", "close": "23:00", "closed": False},
    "saturday": {"open": "08:00", "close": "23:00", "closed": False},
    "sunday": {"open": "08:00", "close": "21:00", "closed": False},
}

CATEGORIES: list[dict[str, Any]] = [
    {"id": "fine-dining", "name": "Fine Dining", "icon": "🍽️", "count": 12},
    {"id": "casual-dining", "name": "Casual Dining", "icon": "🍕", "count": 24},
    {"id": "cafes", "name": "Cafes", "icon": "☕", "count": 18},
    {"id": "fast-food", "name": "Fast Food", "icon": "🍔", "count": 15},
    {"id": "asian-cuisine", "name": "Asian Cuisine", "icon": "🥢", "count": 20},
    {"id": "bars-pubs", "name": "Bars & Pubs", "icon": "🍺", "count": 16},
]

BUSINESSES: list[dict[str, Any]] = [
    {
        "id": "1",
        "name": "The Local Bistro",
        "category_id": "fine-dining",
        "rating": 4.8,
        "review_count": 127,
        "address": "123 Collins Street, Melbourne VIC 3000",
        "coordinates": {"lat": -37.8152, "lng": 144.9707},
        "price_range": "$$$",
        "image_url": "/images/fine-dining-restaurant.png",
        "phone": "+61 3 9123 4567",
        "email": "info@localbistro.com.au",
        "website": "https://localbistro.com.au",
        "description": (
            "An intimate fine dining experience featuring modern Australian cuisine "
            "with French influences."
        ),
        "is_featured": True,
        "is_verified": True,
        "custom_fields": {
            "cuisineType": "French",
            "averageMealPrice": 95,
            "bookingRequired": True,
            "dietaryOptions": ["Vegetarian", "Gluten-Free"],
        },
    },
    {
        "id": "2",
        "name": "Mario's Pizza Palace",
        "category_id": "casual-dining",
        "rating": 4.5,
        "review_count": 89,
        "address": "456 Brunswick Street, Fitzroy VIC 3065",
        "coordinates": {"lat": -37.7984, "lng": 144.9783},
        "price_range": "$$",
        "image_url": "/images/pizza-restaurant.png",
        "phone": "+61 3 9876 5432",
        "email": "hello@mariospizza.com.au",
        "website": "https://mariospizza.com.au",
        "description": "Authentic wood-fired pizzas made with fresh, locally sourced ingredients.",
        "custom_fields": {
            "cuisineType": "Italian",
            "averageMealPrice": 35,
            "bookingRequired": False,
            "dietaryOptions": ["Vegetarian"],
        },
    },
    {
        "id": "3",
        "name": "Brew & Bean Cafe",
        "category_id": "cafes",
        "rating": 4.6,
        "review_count": 156,
        "address": "789 Chapel Street, South Yarra VIC 3141",
        "coordinates": {"lat": -37.8396, "lng": 144.9931},
        "price_range": "$",
        "image_url": "/images/cozy-cafe.png",
        "phone": "+61 3 9555 0123",
        "email": "info@brewandbean.com.au",
        "website": "https://brewandbean.com.au",
        "description": (
            "Specialty coffee roasters serving artisanal brews and fresh pastries "
            "in a cozy atmosphere."
        ),
        "is_verified": True,
        "custom_fields": {
            "averageMealPrice": 15,
            "bookingRequired": False,
            "dietaryOptions": ["Vegan", "Dairy-Free"],
        },
    },
    {
        "id": "4",
        "name": "Dragon Palace",
        "category_id": "asian-cuisine",
        "rating": 4.7,
        "review_count": 203,
        "address": "321 Little Bourke Street, Melbourne VIC 3000",
        "coordinates": {"lat": -37.8115, "lng": 144.9669},
        "price_range": "$$",
        "image_url": "/images/asian-restaurant.png",
        "phone": "+61 3 9888 7777",
        "email": "bookings@dragonpalace.com.au",
        "website": "https://dragonpalace.com.au",
        "description": (
            "Traditional Cantonese cuisine with modern presentation in the heart of Chinatown."
        ),
        "is_featured": True,
        "is_verified": True,
        "custom_fields": {
            "cuisineType": "Chinese",
            "averageMealPrice": 40,
            "bookingRequired": True,
            "dietaryOptions": ["Vegetarian", "Halal"],
        },
    },
    {
        "id": "5",
        "name": "The Crafty Pint",
        "category_id": "bars-pubs",
        "rating": 4.4,
        "review_count": 92,
        "address": "654 Smith Street, Collingwood VIC 3066",
        "coordinates": {"lat": -37.7995, "lng": 144.9840},
        "price_range": "$$",
        "image_url": "/images/pub-bar.png",
        "phone": "+61 3 9777 8888",
        "email": "info@craftypint.com.au",
        "website": "https://craftypint.com.au",
        "description": "Craft beer specialists with rotating taps and hearty pub meals.",
        "custom_fields": {"averageMealPrice": 30, "bookingRequired": False},
    },
    {
        "id": "6",
        "name": "Burger Junction",
        "category_id": "fast-food",
        "rating": 4.2,
        "review_count": 78,
        "address": "987 High Street, Prahran VIC 3181",
        "coordinates": {"lat": -37.8560, "lng": 144.9930},
        "price_range": "$",
        "image_url": "/images/fine-dining-restaurant.png",
        "phone": "+61 3 9444 3333",
        "email": "orders@burgerjunction.com.au",
        "website": "https://burgerjunction.com.au",
        "description": "Gourmet burgers made with premium ingredients and house-made sauces.",
        "custom_fields": {"cuisineType": "American", "averageMealPrice": 20},
    },
    {
        "id": "7",
        "name": "Healthy Harvest Cafe",
        "category_id": "cafes",
        "rating": 4.5,
        "review_count": 134,
        "address": "246 Toorak Road, South Yarra VIC 3141",
        "coordinates": {"lat": -37.8398, "lng": 144.9942},
        "price_range": "$$",
        "image_url": "/images/healthy-cafe.png",
        "phone": "+61 3 9222 1111",
        "email": "hello@healthyharvest.com.au",
        "website": "https://healthyharvest.com.au",
        "description": "Fresh, organic meals and cold-pressed juices for health-conscious diners.",
        "custom_fields": {
            "averageMealPrice": 25,
            "dietaryOptions": ["Vegan", "Gluten-Free", "Dairy-Free"],
        },
    },
    {
        "id": "8",
        "name": "Waterfront Grill",
        "category_id": "fine-dining",
        "rating": 4.9,
        "review_count": 167,
        "address": "1 Southbank Promenade, Southbank VIC 3006",
        "coordinates": {"lat": -37.8200, "lng": 144.9640},
        "price_range": "$$$$",
        "image_url": "/images/waterfront-restaurant.png",
        "phone": "+61 3 9111 2222",
        "email": "reservations@waterfrontgrill.com.au",
        "website": "https://waterfrontgrill.com.au",
        "description": "Premium steakhouse with stunning river views and an extensive wine list.",
        "is_featured": True,
        "is_verified": True,
        "custom_fields": {
            "cuisineType": "American",
            "averageMealPrice": 150,
            "bookingRequired": True,
        },
    },
]

BLOG_POSTS: list[dict[str, Any]] = [
    {
        "id": "1",
        "title": "How The Local Bistro Survived COVID and Became Stronger",
        "slug": "local-bistro-covid-survival-story",
        "excerpt": (
            "Behind the scenes with owner Sarah Martinez as she shares the incredible journey "
            "of adapting during the pandemic and emerging with a thriving business."
        ),
        "featured_image": "/images/blog/local-bistro-story.png",
        "publish_date": datetime(2024, 6, 28, tzinfo=UTC),
        "read_time": "3 min read",
        "category": "Success Stories",
        "business_id": "1",
        "tags": ["Fine Dining", "Resilience"],
    },
    {
        "id": "2",
        "title": "Meet the Chef: Dragon Palace's Secret Family Recipes",
        "slug": "dragon-palace-family-recipes",
        "excerpt": (
            "Chef Wong opens up about the traditional recipes passed down through four "
            "generations and how they've adapted them for Melbourne palates."
        ),
        "featured_image": "/images/blog/dragon-palace-chef.png",
        "publish_date": datetime(2024, 6, 25, tzinfo=UTC),
        "read_time": "4 min read",
        "category": "Chef Spotlight",
        "business_id": "4",
        "tags": ["Cantonese", "Family"],
    },
    {
        "id": "3",
        "title": "Farm to Table: Green Garden Cafe's Sustainability Story",
        "slug": "green-garden-farm-to-table",
        "excerpt": (
            "Discover how this local cafe sources 90% of ingredients from within 50km and "
            "their impact on the local farming community."
        ),
        "featured_image": "/images/blog/green-garden-sustainability.png",
        "publish_date": datetime(2024, 6, 23, tzinfo=UTC),
        "read_time": "5 min read",
        "category": "Sustainability",
        "business_id": "7",
        "tags": ["Organic", "Local Produce"],
    },
    {
        "id": "4",
        "title": "The Art of Mixology: Behind the Bar at Rooftop Lounge",
        "slug": "rooftop-lounge-mixology-secrets",
        "excerpt": (
            "Master mixologist James Chen reveals the secrets behind the city's most innovative "
            "cocktails and the inspiration for his signature drinks."
        ),
        "featured_image": "/images/blog/rooftop-bar-mixology.png",
        "publish_date": datetime(2024, 6, 22, tzinfo=UTC),
        "read_time": "4 min read",
        "category": "Behind the Scenes",
        "business_id": "5",
        "tags": ["Cocktails"],
    },
    {
        "id": "5",
        "title": "Rising at Dawn: The Artisan Bakery's Daily Ritual",
        "slug": "artisan-bakery-daily-ritual",
        "excerpt": (
            "Follow baker Maria Santos through her 4 AM routine as she crafts the perfect "
            "sourdough and pastries that keep customers coming back."
        ),
        "featured_image": "/images/blog/artisan-bakery-craft.png",
        "publish_date": datetime(2024, 6, 16, tzinfo=UTC),
        "read_time": "6 min read",
        "category": "Artisan Craft",
        "business_id": "3",
        "tags": ["Baking", "Coffee"],
    },
    {
        "id": "6",
        "title": "Mediterranean Traditions in Melbourne: A Family Legacy",
        "slug": "mediterranean-traditions-family-legacy",
        "excerpt": (
            "Three generations of the Rossi family share how they've preserved authentic "
            "Mediterranean flavors while embracing Australian influences."
        ),
        "featured_image": "/images/blog/mediterranean-traditions.png",
        "publish_date": datetime(2024, 6, 9, tzinfo=UTC),
        "read_time": "5 min read",
        "category": "Cultural Heritage",
        "business_id": "2",
        "tags": ["Pizza", "Family"],
    },
]

USERS: list[dict[str, Any]] = [
    {"id": "1", "email": "admin@example.com", "name": "Admin User", "role": "admin"},
    {"id": "2", "email": "owner@example.com", "name": "Business Owner", "role": "business_owner"},
    {"id": "3", "email": "user@example.com", "name": "Regular User", "role": "user"},
]

# sample listings were added one day apart starting here
SEED_EPOCH = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)


def sample_categories() -> list[Category]:
    return [
        Category(slug=entry["id"], sort_order=index, **copy.deepcopy(entry))
        for index, entry in enumerate(CATEGORIES, start=1)
    ]


def sample_businesses() -> list[Business]:
    """Fresh copies of the sample listings; callers may mutate them freely."""
    labels = {entry["id"]: entry["name"] for entry in CATEGORIES}
    businesses: list[Business] = []
    for index, raw in enumerate(BUSINESSES):
        entry = copy.deepcopy(raw)
        added = SEED_EPOCH + timedelta(days=index)
        description = entry.get("description") or ""
        entry.setdefault("slug", slugify(entry["name"]))
        entry.setdefault("category", labels.get(entry["category_id"], "Uncategorized"))
        entry.setdefault(
            "short_description",
            description if len(description) <= 150 else description[:150] + "...",
        )
        entry.setdefault("images", [entry["image_url"]])
        entry.setdefault("business_hours", copy.deepcopy(STANDARD_HOURS))
        entry.setdefault("date_added", added)
        entry.setdefault("last_updated", added)
        businesses.append(Business(**entry))
    return businesses


def sample_blog_posts() -> list[BlogPost]:
    names = {entry["id"]: entry["name"] for entry in BUSINESSES}
    posts: list[BlogPost] = []
    for index, raw in enumerate(BLOG_POSTS):
        entry = copy.deepcopy(raw)
        entry.setdefault("author", f"{settings.SITE_NAME} Team")
        entry.setdefault("business_name", names.get(entry.get("business_id") or ""))
        entry.setdefault("content", entry["excerpt"])
        entry.setdefault("is_published", True)
        entry.setdefault("is_featured", index < 3)
        posts.append(BlogPost(**entry))
    return posts


def sample_users() -> list[User]:
    return [User(**copy.deepcopy(entry)) for entry in USERS]


__all__ = [
    "BLOG_POSTS",
    "BUSINESSES",
    "CATEGORIES",
    "STANDARD_HOURS",
    "sample_blog_posts",
    "sample_businesses",
    "sample_categories",
    "sample_users",
]
