from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import auth_headers, ts
from youthlink.models import Application, Opportunity, UserRole
from youthlink.services import opportunities as opportunity_service
from youthlink.services import tasks

NEW_OPPORTUNITY = {
    "title": "Coding bootcamp",
    "description": "Twelve week web development bootcamp",
    "categories": ["REFUGEE", "IDP"],
    "countries": ["Kenya", "Uganda"],
    "deadline": "2031-01-01T00:00:00Z",
    "max_applicants": 30,
    "application_link": "https://hopefund.youthlink.org/apply",
}


def test_donor_creates_opportunity(client: TestClient, donor):
    response = client.post("/api/opportunities", headers=auth_headers(donor), json=NEW_OPPORTUNITY)

    assert response.status_code == 201
    data = response.json()
    assert data["donor_id"] == donor.id
    assert data["is_active"] is True
    assert data["categories"] == ["REFUGEE", "IDP"]
    assert data["donor"]["organization_name"] == "Hope Fund"
    assert data["application_link"] == "https://hopefund.youthlink.org/apply"


def test_youth_cannot_create_opportunity(client: TestClient, youth):
    response = client.post("/api/opportunities", headers=auth_headers(youth), json=NEW_OPPORTUNITY)

    assert response.status_code == 403


@pytest.mark.parametrize(
    "override",
    [{"categories": []}, {"countries": []}, {"max_applicants": 0}, {"title": ""}],
)
def test_create_validates_payload(client: TestClient, donor, override):
    response = client.post(
        "/api/opportunities",
        headers=auth_headers(donor),
        json={**NEW_OPPORTUNITY, **override},
    )

    assert response.status_code == 422


def test_list_filters(client: TestClient, youth, donor, make_user, make_opportunity):
    other_donor = make_user(UserRole.DONOR)
    kenya_refugee = make_opportunity(donor, categories=["REFUGEE"], countries=["Kenya"])
    uganda_idp = make_opportunity(donor, categories=["IDP", "PWD"], countries=["Uganda"])
    closed = make_opportunity(other_donor, categories=["REFUGEE"], countries=["kenya"], is_active=False)

    def ids(**params):
        response = client.get("/api/opportunities", headers=auth_headers(youth), params=params)
        assert response.status_code == 200
        return {o["id"] for o in response.json()}

    assert ids() == {kenya_refugee.id, uganda_idp.id, closed.id}
    assert ids(category="REFUGEE") == {kenya_refugee.id, closed.id}
    assert ids(country="KENYA") == {kenya_refugee.id, closed.id}
    assert ids(is_active="true") == {kenya_refugee.id, uganda_idp.id}
    assert ids(donor_id=other_donor.id) == {closed.id}
    assert ids(category="PWD", country="uganda", is_active="true") == {uganda_idp.id}


def test_list_newest_first(client: TestClient, youth, donor, make_opportunity):
    older = make_opportunity(donor, created_at=datetime(2024, 1, 1))
    newer = make_opportunity(donor, created_at=datetime(2024, 6, 1))

    response = client.get("/api/opportunities", headers=auth_headers(youth))

    assert [o["id"] for o in response.json()] == [newer.id, older.id]


def test_get_opportunity_with_application_count(
    client: TestClient, verified_youth, donor, make_opportunity, db_session
):
    opportunity = make_opportunity(donor)
    db_session.add(Application(youth_id=verified_youth.id, opportunity_id=opportunity.id))
    db_session.commit()

    response = client.get(f"/api/opportunities/{opportunity.id}", headers=auth_headers(verified_youth))

    assert response.status_code == 200
    assert response.json()["application_count"] == 1


def test_get_missing_opportunity(client: TestClient, youth):
    response = client.get("/api/opportunities/missing", headers=auth_headers(youth))

    assert response.status_code == 404


def test_update_by_owner_is_partial(client: TestClient, donor, make_opportunity):
    opportunity = make_opportunity(donor, countries=["Kenya"])

    response = client.put(
        f"/api/opportunities/{opportunity.id}",
        headers=auth_headers(donor),
        json={"title": "Renamed", "is_active": False},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renamed"
    assert data["is_active"] is False
    assert data["countries"] == ["Kenya"]


def test_update_by_other_donor_forbidden(client: TestClient, donor, make_user, make_opportunity):
    opportunity = make_opportunity(donor)
    intruder = make_user(UserRole.DONOR)

    response = client.put(
        f"/api/opportunities/{opportunity.id}",
        headers=auth_headers(intruder),
        json={"title": "Hijacked"},
    )

    assert response.status_code == 403


@pytest.mark.parametrize("field", ["title", "description", "categories", "countries", "is_active"])
def test_update_rejects_null_for_required_fields(client: TestClient, donor, make_opportunity, field):
    opportunity = make_opportunity(donor, title="Kept")

    response = client.put(
        f"/api/opportunities/{opportunity.id}",
        headers=auth_headers(donor),
        json={field: None},
    )

    assert response.status_code == 422


def test_update_clears_optional_fields(client: TestClient, donor, make_opportunity):
    opportunity = make_opportunity(donor, deadline=ts(days=3), max_applicants=10)

    response = client.put(
        f"/api/opportunities/{opportunity.id}",
        headers=auth_headers(donor),
        json={"deadline": None, "max_applicants": None},
    )

    assert response.status_code == 200
    assert response.json()["deadline"] is None
    assert response.json()["max_applicants"] is None


def test_admin_may_update_any_opportunity(client: TestClient, admin, donor, make_opportunity):
    opportunity = make_opportunity(donor)

    response = client.put(
        f"/api/opportunities/{opportunity.id}",
        headers=auth_headers(admin),
        json={"max_applicants": 5},
    )

    assert response.status_code == 200
    assert response.json()["max_applicants"] == 5


def test_delete_cascades_applications(
    client: TestClient, donor, verified_youth, make_opportunity, db_session
):
    opportunity = make_opportunity(donor)
    db_session.add(Application(youth_id=verified_youth.id, opportunity_id=opportunity.id))
    db_session.commit()

    response = client.delete(f"/api/opportunities/{opportunity.id}", headers=auth_headers(donor))

    assert response.status_code == 200
    assert response.json() == {"message": "Opportunity deleted"}
    assert db_session.query(Opportunity).count() == 0
    assert db_session.query(Application).count() == 0


def test_delete_by_other_donor_forbidden(client: TestClient, donor, make_user, make_opportunity, db_session):
    opportunity = make_opportunity(donor)
    intruder = make_user(UserRole.DONOR)

    response = client.delete(f"/api/opportunities/{opportunity.id}", headers=auth_headers(intruder))

    assert response.status_code == 403
    assert db_session.query(Opportunity).count() == 1


def test_close_expired_opportunities(db_session, donor, make_opportunity):
    expired = make_opportunity(donor, deadline=ts(days=-1))
    upcoming = make_opportunity(donor, deadline=ts(days=10))
    open_ended = make_opportunity(donor, deadline=None)

    closed = opportunity_service.close_expired_opportunities(db_session)

    assert closed == 1
    for opportunity in (expired, upcoming, open_ended):
        db_session.refresh(opportunity)
    assert expired.is_active is False
    assert upcoming.is_active is True
    assert open_ended.is_active is True


def test_close_expired_endpoint_falls_back_inline(
    client: TestClient, admin, donor, make_opportunity, monkeypatch
):
    make_opportunity(donor, deadline=ts(hours=-2))

    def broker_down(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(tasks.close_expired_opportunities_task, "delay", broker_down)

    response = client.post("/api/opportunities/close-expired", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json() == {"execution_mode": "inline", "task_id": None, "closed": 1}


def test_close_expired_endpoint_queues_task(client: TestClient, admin, monkeypatch):
    class FakeResult:
        id = "task-123"

    monkeypatch.setattr(tasks.close_expired_opportunities_task, "delay", lambda: FakeResult())

    response = client.post("/api/opportunities/close-expired", headers=auth_headers(admin))

    assert response.json() == {"execution_mode": "celery", "task_id": "task-123", "closed": None}
