"""Tests for the HTTP API."""

import base64
from datetime import UTC, datetime

import pytest

from nutriscan.services.analysis import DEFAULT_TIPS
from tests.conftest import make_meal

REFERENCE_PROFILE = {
    "age": 30,
    "gender": "male",
    "weight": 80,
    "height": 164,
    "activity_level": "moderate",
    "fitness_goal": "maintenance",
    "timezone": "UTC",
}


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_protected_routes_require_bearer_token(client) -> None:
    assert client.get("/profile").status_code == 401
    assert client.get("/meals").status_code == 401
    response = client.get("/calories", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    response = client.get("/calories", headers={"Authorization": "Basic abc"})
    assert response.status_code == 401


def test_sign_up_and_sign_in(client) -> None:
    response = client.post(
        "/auth/sign-up", json={"email": "Bo@Example.com", "password": "hunter22"}
    )
    assert response.status_code == 200
    assert response.json()["email"] == "bo@example.com"

    response = client.post(
        "/auth/sign-in", json={"email": "bo@example.com", "password": "hunter22"}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = client.get("/meals", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_sign_in_with_wrong_password_is_unauthorized(client, session) -> None:
    response = client.post(
        "/auth/sign-in", json={"email": session.email, "password": "wrong-pass"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid login credentials"


def test_provider_sign_in_url(client) -> None:
    response = client.get("/auth/provider/google", params={"redirect_to": "/"})

    assert response.status_code == 200
    assert response.json()["url"].startswith("https://auth.example.com/")
    assert client.get("/auth/provider/unknown").status_code == 401


def test_sign_out_revokes_session(client, auth_headers, auth_provider) -> None:
    response = client.post("/auth/sign-out", headers=auth_headers)

    assert response.status_code == 200
    assert auth_provider.revoked == ["test-access-token"]
    assert client.get("/meals", headers=auth_headers).status_code == 401


def test_profile_put_then_patch(client, auth_headers) -> None:
    assert client.get("/profile", headers=auth_headers).status_code == 404

    response = client.put(
        "/profile",
        headers=auth_headers,
        json={**REFERENCE_PROFILE, "weight": 176, "weight_unit": "lbs"},
    )
    assert response.status_code == 200
    assert response.json()["weight"] == 79.8

    response = client.patch(
        "/profile", headers=auth_headers, json={"display_name": "Ana"}
    )
    data = response.json()
    assert data["display_name"] == "Ana"
    assert data["age"] == 30


def test_profile_rejects_out_of_range_age(client, auth_headers) -> None:
    response = client.put(
        "/profile", headers=auth_headers, json={**REFERENCE_PROFILE, "age": 8}
    )

    assert response.status_code == 422


def test_profile_rejects_unknown_timezone(client, auth_headers) -> None:
    response = client.put(
        "/profile",
        headers=auth_headers,
        json={**REFERENCE_PROFILE, "timezone": "Nowhere/Town"},
    )

    assert response.status_code == 422
    assert response.json()["field"] == "timezone"


def test_calories_require_complete_profile(client, auth_headers) -> None:
    client.put("/profile", headers=auth_headers, json={"age": 30})

    response = client.get("/calories", headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["missing_fields"] == [
        "gender",
        "weight",
        "height",
        "activity_level",
        "fitness_goal",
    ]


def test_calories_status(client, auth_headers, meal_repository, session) -> None:
    client.put("/profile", headers=auth_headers, json=REFERENCE_PROFILE)
    meal_repository.add(
        make_meal(session.user_id, datetime.now(tz=UTC), calories=604)
    )

    response = client.get("/calories", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["daily_goal"] == 2604
    assert data["consumed"] == 604
    assert data["remaining"] == 2000
    assert data["macros"] == {"protein": 160, "carbs": 293, "fat": 72}


def test_analysis_from_text(client, auth_headers, analysis_client) -> None:
    response = client.post(
        "/analysis", headers=auth_headers, json={"text": "chicken salad"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["food_name"] == "Chicken salad"
    assert data["calories"] == 420
    assert "Dish name: chicken salad" in analysis_client.calls[0]["prompt"]


def test_analysis_accepts_data_url_image(client, auth_headers, analysis_client) -> None:
    encoded = base64.b64encode(b"\x89PNG\r\n\x1a\nrest").decode("ascii")

    response = client.post(
        "/analysis",
        headers=auth_headers,
        json={"image_base64": f"data:image/png;base64,{encoded}"},
    )

    assert response.status_code == 200
    image_url = analysis_client.calls[0]["image_data_url"]
    assert image_url.startswith("data:image/png;base64,")


def test_analysis_requires_input(client, auth_headers) -> None:
    response = client.post("/analysis", headers=auth_headers, json={"text": " "})

    assert response.status_code == 400


def test_analysis_rejects_bad_base64(client, auth_headers) -> None:
    response = client.post(
        "/analysis", headers=auth_headers, json={"image_base64": "!!not-base64!!"}
    )

    assert response.status_code == 400


def test_analysis_unparseable_output_is_bad_gateway(
    client, auth_headers, analysis_client
) -> None:
    analysis_client.responses[:] = ["I think it is soup."]

    response = client.post("/analysis", headers=auth_headers, json={"text": "soup"})

    assert response.status_code == 502
    assert response.json()["reason"] == "No JSON object found in response"


def test_analysis_model_failure_is_bad_gateway(
    client, auth_headers, analysis_client
) -> None:
    analysis_client.failures = 5

    response = client.post("/analysis", headers=auth_headers, json={"text": "soup"})

    assert response.status_code == 502


def test_meal_lifecycle(client, auth_headers) -> None:
    response = client.post(
        "/meals",
        headers=auth_headers,
        json={
            "foodName": "Tuna sandwich",
            "calories": 450,
            "macros": {"protein": 30, "carbs": 40, "fat": 15, "fiber": 4, "sugar": 5},
            "recommendations": ["Choose whole grain bread"],
        },
    )
    assert response.status_code == 201
    meal = response.json()
    assert meal["food_name"] == "Tuna sandwich"
    assert meal["macros"]["fiber"] == 4

    listing = client.get("/meals", headers=auth_headers).json()
    assert [item["id"] for item in listing["meals"]] == [meal["id"]]

    response = client.get(f"/meals/{meal['id']}", headers=auth_headers)
    assert response.status_code == 200

    response = client.delete(f"/meals/{meal['id']}", headers=auth_headers)
    assert response.status_code == 200
    response = client.get(f"/meals/{meal['id']}", headers=auth_headers)
    assert response.status_code == 404


def test_save_meal_validates_payload(client, auth_headers) -> None:
    response = client.post(
        "/meals",
        headers=auth_headers,
        json={"foodName": "", "calories": -1, "macros": {}},
    )

    assert response.status_code == 422


def test_stats_endpoints(client, auth_headers, meal_repository, session) -> None:
    meal_repository.add(
        make_meal(session.user_id, datetime.now(tz=UTC), calories=700)
    )
    meal_repository.add(
        make_meal(session.user_id, datetime(2025, 2, 14, 12, tzinfo=UTC))
    )

    today = client.get("/stats/today", headers=auth_headers).json()
    assert today["count"] == 1
    assert today["total_calories"] == 700

    week = client.get("/stats/week", headers=auth_headers).json()
    assert week["current"]["count"] == 1

    month = client.get(
        "/stats/month", headers=auth_headers, params={"year": 2025, "month": 2}
    ).json()
    assert month["total_meals"] == 1

    calendar = client.get(
        "/stats/calendar", headers=auth_headers, params={"year": 2025, "month": 2}
    ).json()
    assert len(calendar["days"]) == 28
    assert calendar["days"][13] == {
        "day": "2025-02-14",
        "meal_count": 1,
        "total_calories": 500,
    }

    overview = client.get("/stats/overview", headers=auth_headers).json()
    assert overview["count"] == 2
    assert overview["total_calories"] == 1200


def test_stats_month_rejects_invalid_month(client, auth_headers) -> None:
    response = client.get(
        "/stats/month", headers=auth_headers, params={"year": 2025, "month": 13}
    )

    assert response.status_code == 422


@pytest.mark.parametrize(
    ("path", "params"),
    [
        ("/stats/calendar", {"year": 9999, "month": 12}),
        ("/stats/month", {"year": -5, "month": 3}),
        ("/stats/month", {"year": 0}),
        ("/stats/calendar", {"month": 0}),
    ],
)
def test_stats_month_rejects_out_of_range_dates(
    client, auth_headers, path, params
) -> None:
    response = client.get(path, headers=auth_headers, params=params)

    assert response.status_code == 422


def test_stats_calendar_accepts_last_supported_december(client, auth_headers) -> None:
    response = client.get(
        "/stats/calendar", headers=auth_headers, params={"year": 9998, "month": 12}
    )

    assert response.status_code == 200
    assert len(response.json()["days"]) == 31


def test_calories_reject_profile_with_non_positive_bmr(client, auth_headers) -> None:
    client.put(
        "/profile",
        headers=auth_headers,
        json={
            **REFERENCE_PROFILE,
            "age": 120,
            "gender": "female",
            "weight": 1,
            "height": 1,
        },
    )

    response = client.get("/calories", headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["field"] == "bmr"


def test_tips_are_returned_and_cached(client, auth_headers, analysis_client) -> None:
    analysis_client.responses[:] = ['{"tips": ["Eat more beans"]}']

    first = client.get("/tips", headers=auth_headers).json()
    second = client.get("/tips", headers=auth_headers).json()

    assert first == second == {"tips": ["Eat more beans"]}
    assert len(analysis_client.calls) == 1


def test_tips_fall_back_when_model_output_is_unusable(client, auth_headers) -> None:
    response = client.get("/tips", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["tips"] == DEFAULT_TIPS


def test_tips_fall_back_when_model_fails(
    client, auth_headers, analysis_client
) -> None:
    analysis_client.failures = 5

    response = client.get("/tips", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["tips"] == DEFAULT_TIPS
