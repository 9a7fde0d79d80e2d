"""
Model builders shared by the test modules
"""
from authentication.jwt_auth import generate_token
from content.models import BlogPost, Testimonial
from projects.models import Project


def auth_header(token: str) -> dict:
    return {"HTTP_AUTHORIZATION": f"Bearer {token}"}


def headers_for(user) -> dict:
    return auth_header(generate_token(user))


def make_project(**overrides) -> Project:
    values = {
        "name": "Malabar Spice Gardens",
        "slug": "malabar-spice-gardens",
        "description": "Pepper and cardamom estate in Wayanad.",
        "location": "Wayanad",
        "state": "Kerala",
        "project_type": Project.TYPE_SPICE,
        "price_per_sq_ft": "249.00",
        "coordinates": {"lat": 11.6854, "lng": 76.1320},
        "features": ["Pepper vines"],
        "expected_returns": "12-15% annually",
    }
    values.update(overrides)
    return Project.objects.create(**values)


def make_blog_post(**overrides) -> BlogPost:
    values = {
        "title": "Why managed farmland works",
        "slug": "why-managed-farmland",
        "excerpt": "Steady crop income plus land appreciation.",
        "content": "Managed farmland lets you own agricultural land while a professional team handles "
                   "cultivation, maintenance and harvest for you.",
        "category": "Investment",
        "tags": ["farmland", "investment"],
        "published": True,
    }
    values.update(overrides)
    return BlogPost.objects.create(**values)


def make_testimonial(**overrides) -> Testimonial:
    values = {
        "name": "Anita Menon",
        "content": "The harvest covers the maintenance and the team is responsive.",
        "rating": 5,
        "approved": True,
    }
    values.update(overrides)
    return Testimonial.objects.create(**values)
