from __future__ import annotations

import pytest
from backend.app.contracts import ReviewCreate, ReviewReplyCreate, ReviewUpdate
from backend.app.errors import NotFoundError, ValidationError
from backend.app.service import service


def _review(rating, *, user_id="3", content="Lovely spot", **extra):
    return ReviewCreate(user_id=user_id, rating=rating, content=content, **extra)


def test_rating_and_count_follow_reviews(run):
    run(service.reviews.create("3", _review(5)))
    run(service.reviews.create("3", _review(4)))
    run(service.reviews.create("3", _review(4)))

    business = service.directory.businesses.get("3")
    assert business.review_count == 3
    assert business.rating == pytest.approx(4.33)


def test_deleting_every_review_resets_stats(run):
    first = run(service.reviews.create("6", _review(2)))
    second = run(service.reviews.create("6", _review(3)))
    assert service.directory.businesses.get("6").rating == pytest.approx(2.5)

    run(service.reviews.delete(first.id))
    assert service.directory.businesses.get("6").rating == pytest.approx(3.0)
    run(service.reviews.delete(second.id))

    business = service.directory.businesses.get("6")
    assert business.review_count == 0
    assert business.rating == 0


def test_update_recomputes_rating(run):
    review = run(service.reviews.create("4", _review(1)))
    updated = run(service.reviews.update(review.id, ReviewUpdate(rating=5, title=" Changed ")))
    assert updated.rating == 5
    assert updated.title == "Changed"
    assert updated.date_updated is not None
    assert service.directory.businesses.get("4").rating == 5


def test_reviews_listed_newest_first(run):
    for index in range(3):
        run(service.reviews.create("2", _review(4, content=f"Visit {index}")))
    reviews = run(service.reviews.for_business("2"))
    assert [review.content for review in reviews] == ["Visit 2", "Visit 1", "Visit 0"]
    page = run(service.reviews.for_business("2", limit=1, offset=1))
    assert [review.content for review in page] == ["Visit 1"]


def test_user_name_defaults_to_directory_user(run):
    review = run(service.reviews.create("1", _review(5)))
    assert review.user_name == "Regular User"
    named = run(service.reviews.create("1", _review(5, user_name="Sam")))
    assert named.user_name == "Sam"


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        ({"rating": 0}, "rating"),
        ({"rating": 6}, "rating"),
        ({"rating": 4, "content": "   "}, "content"),
        ({"rating": 4, "user_id": " "}, "user_id"),
    ],
)
def test_invalid_reviews_are_rejected(run, payload, field):
    with pytest.raises(ValidationError) as excinfo:
        run(service.reviews.create("1", _review(**payload)))
    assert excinfo.value.field == field
    assert run(service.reviews.for_business("1")) == []


def test_review_for_unknown_business(run):
    with pytest.raises(NotFoundError):
        run(service.reviews.create("999", _review(5)))


def test_helpful_and_owner_response(run):
    review = run(service.reviews.create("5", _review(4)))
    run(service.reviews.mark_helpful(review.id))
    helpful = run(service.reviews.mark_helpful(review.id))
    assert helpful.is_helpful == 2

    reply = ReviewReplyCreate(content=" Thanks for visiting! ", author_name="The Crafty Pint")
    responded = run(service.reviews.respond(review.id, reply))
    assert responded.response.content == "Thanks for visiting!"
    assert responded.response.author_name == "The Crafty Pint"
    assert run(service.reviews.get(review.id)).response == responded.response


def test_missing_review_operations(run):
    with pytest.raises(NotFoundError):
        run(service.reviews.get("nope"))
    with pytest.raises(NotFoundError):
        run(service.reviews.mark_helpful("nope"))
    with pytest.raises(NotFoundError):
        run(service.reviews.delete("nope"))


def test_review_envelopes(run):
    created = run(service.create_review("7", _review(3)))
    assert created.success is True
    assert created.status_code == 201

    invalid = run(service.create_review("7", _review(9)))
    assert invalid.success is False
    assert invalid.field == "rating"
    assert invalid.status_code == 422

    missing = run(service.update_review("nope", ReviewUpdate(rating=2)))
    assert missing.status_code == 404
    assert missing.error == "Review not found"
