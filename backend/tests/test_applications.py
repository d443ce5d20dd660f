import pytest
from fastapi.testclient import TestClient

from conftest import auth_headers, ts
from youthlink import schemas
from youthlink.core.exceptions import ValidationFailedError
from youthlink.models import (
    Application,
    ApplicationStatus,
    Document,
    DocumentType,
    UserRole,
    VerificationStatus,
)
from youthlink.services import applications as application_service


def _apply(client, youth, opportunity_id, **extra):
    return client.post(
        "/api/applications",
        headers=auth_headers(youth),
        json={"opportunity_id": opportunity_id, **extra},
    )


# ---- Eligibility gate ----


def test_verified_youth_applies(client: TestClient, verified_youth, donor, make_opportunity):
    opportunity = make_opportunity(donor, deadline=ts(days=5), max_applicants=10)

    response = _apply(client, verified_youth, opportunity.id, cover_letter="I am motivated")

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["cover_letter"] == "I am motivated"
    assert data["opportunity"]["donor"]["id"] == donor.id
    assert data["youth"]["id"] == verified_youth.id


def test_unknown_opportunity(client: TestClient, verified_youth):
    response = _apply(client, verified_youth, "missing")

    assert response.status_code == 404
    assert response.json()["detail"] == "Opportunity not found"


def test_inactive_opportunity(client: TestClient, verified_youth, donor, make_opportunity):
    opportunity = make_opportunity(donor, is_active=False)

    response = _apply(client, verified_youth, opportunity.id)

    assert response.status_code == 400
    assert response.json()["detail"] == "This opportunity is no longer active"


def test_deadline_passed(client: TestClient, verified_youth, donor, make_opportunity):
    opportunity = make_opportunity(donor, deadline=ts(minutes=-1))

    response = _apply(client, verified_youth, opportunity.id)

    assert response.status_code == 400
    assert response.json()["detail"] == "The deadline for this opportunity has passed"


@pytest.mark.parametrize(
    "status",
    [
        VerificationStatus.PENDING,
        VerificationStatus.UNDER_REVIEW,
        VerificationStatus.REJECTED,
        None,
    ],
)
def test_unverified_youth_is_turned_away(client: TestClient, make_user, donor, make_opportunity, status):
    youth = make_user(UserRole.YOUTH, verification_status=status)
    opportunity = make_opportunity(donor)

    response = _apply(client, youth, opportunity.id)

    assert response.status_code == 400
    assert response.json()["detail"] == "You must be verified before applying to opportunities"


def test_duplicate_application(client: TestClient, verified_youth, donor, make_opportunity):
    opportunity = make_opportunity(donor)
    assert _apply(client, verified_youth, opportunity.id).status_code == 201

    response = _apply(client, verified_youth, opportunity.id)

    assert response.status_code == 400
    assert response.json()["detail"] == "You have already applied to this opportunity"


def test_capacity_reached(client: TestClient, make_user, donor, make_opportunity):
    opportunity = make_opportunity(donor, max_applicants=1)
    first = make_user(UserRole.YOUTH, verification_status=VerificationStatus.VERIFIED)
    second = make_user(UserRole.YOUTH, verification_status=VerificationStatus.VERIFIED)

    assert _apply(client, first, opportunity.id).status_code == 201
    response = _apply(client, second, opportunity.id)

    assert response.status_code == 400
    assert response.json()["detail"] == "This opportunity has reached its maximum number of applicants"


def test_rules_are_checked_in_order(db_session, make_user, donor, make_opportunity):
    # Inactive and past deadline and unverified: inactivity is reported first
    youth = make_user(UserRole.YOUTH)
    opportunity = make_opportunity(donor, is_active=False, deadline=ts(days=-3))

    with pytest.raises(ValidationFailedError, match="no longer active"):
        application_service.check_eligibility(db_session, youth.id, opportunity.id)

    opportunity.is_active = True
    db_session.commit()
    with pytest.raises(ValidationFailedError, match="deadline"):
        application_service.check_eligibility(db_session, youth.id, opportunity.id)


def test_only_youth_may_apply(client: TestClient, donor, make_opportunity):
    opportunity = make_opportunity(donor)

    response = _apply(client, donor, opportunity.id)

    assert response.status_code == 403


def test_attachments_are_stored_as_documents(
    client: TestClient, verified_youth, donor, make_opportunity, db_session
):
    opportunity = make_opportunity(donor)

    response = _apply(
        client,
        verified_youth,
        opportunity.id,
        documents=[
            {"file_name": "cv.pdf", "file_url": "https://files.youthlink.org/cv.pdf", "size": 2048},
            {
                "file_name": "letter.pdf",
                "file_url": "https://files.youthlink.org/letter.pdf",
                "type": "RECOMMENDATION_LETTER",
            },
        ],
    )

    assert response.status_code == 201
    docs = {
        d.file_name: d
        for d in db_session.query(Document).filter(Document.user_id == verified_youth.id)
    }
    assert docs["cv.pdf"].type == DocumentType.ATTACHMENT
    assert docs["cv.pdf"].size == 2048
    assert docs["letter.pdf"].type == DocumentType.RECOMMENDATION_LETTER


def test_typed_attachment_replaces_verification_document(
    client: TestClient, verified_youth, donor, make_opportunity, db_session
):
    db_session.add(
        Document(
            user_id=verified_youth.id,
            type=DocumentType.ID,
            file_name="old-id.pdf",
            file_url="https://files.youthlink.org/old-id.pdf",
        )
    )
    db_session.commit()
    opportunity = make_opportunity(donor)

    response = _apply(
        client,
        verified_youth,
        opportunity.id,
        documents=[
            {"file_name": "new-id.pdf", "file_url": "https://files.youthlink.org/new-id.pdf", "type": "ID"},
            {"file_name": "a.pdf", "file_url": "https://files.youthlink.org/a.pdf"},
            {"file_name": "b.pdf", "file_url": "https://files.youthlink.org/b.pdf"},
        ],
    )

    assert response.status_code == 201
    [id_doc] = (
        db_session.query(Document)
        .filter(Document.user_id == verified_youth.id, Document.type == DocumentType.ID)
        .all()
    )
    assert id_doc.file_name == "new-id.pdf"
    assert (
        db_session.query(Document)
        .filter(Document.user_id == verified_youth.id, Document.type == DocumentType.ATTACHMENT)
        .count()
        == 2
    )


def test_rejected_application_stores_no_attachments(
    client: TestClient, youth, donor, make_opportunity, db_session
):
    opportunity = make_opportunity(donor)

    response = _apply(
        client,
        youth,
        opportunity.id,
        documents=[{"file_name": "cv.pdf", "file_url": "https://files.youthlink.org/cv.pdf"}],
    )

    assert response.status_code == 400
    assert db_session.query(Document).count() == 0


# ---- Listing and review ----


def test_my_applications(client: TestClient, verified_youth, donor, make_opportunity):
    first = make_opportunity(donor, title="First")
    second = make_opportunity(donor, title="Second")
    _apply(client, verified_youth, first.id)
    _apply(client, verified_youth, second.id)

    response = client.get("/api/applications/my-applications", headers=auth_headers(verified_youth))

    assert response.status_code == 200
    assert {a["opportunity"]["title"] for a in response.json()} == {"First", "Second"}


def test_donor_lists_opportunity_applications(
    client: TestClient, verified_youth, donor, make_opportunity
):
    opportunity = make_opportunity(donor)
    _apply(client, verified_youth, opportunity.id)

    response = client.get(
        f"/api/applications/opportunity/{opportunity.id}",
        headers=auth_headers(donor),
    )

    assert response.status_code == 200
    [application] = response.json()
    assert application["youth"]["id"] == verified_youth.id
    assert application["youth"]["verification"] == {"status": "VERIFIED"}


def test_other_donor_cannot_list_applications(client: TestClient, donor, make_user, make_opportunity):
    opportunity = make_opportunity(donor)
    other = make_user(UserRole.DONOR)

    response = client.get(
        f"/api/applications/opportunity/{opportunity.id}",
        headers=auth_headers(other),
    )

    assert response.status_code == 403


def test_list_applications_for_missing_opportunity(client: TestClient, donor):
    response = client.get("/api/applications/opportunity/missing", headers=auth_headers(donor))

    assert response.status_code == 404


def test_donor_updates_status(client: TestClient, verified_youth, donor, make_opportunity):
    opportunity = make_opportunity(donor)
    application_id = _apply(client, verified_youth, opportunity.id).json()["id"]

    response = client.put(
        f"/api/applications/{application_id}/status",
        headers=auth_headers(donor),
        json={"status": "SELECTED"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "SELECTED"


def test_status_update_requires_owner(
    client: TestClient, verified_youth, donor, make_user, make_opportunity, db_session
):
    opportunity = make_opportunity(donor)
    application = Application(youth_id=verified_youth.id, opportunity_id=opportunity.id)
    db_session.add(application)
    db_session.commit()
    other = make_user(UserRole.DONOR)

    response = client.put(
        f"/api/applications/{application.id}/status",
        headers=auth_headers(other),
        json={"status": "REJECTED"},
    )

    assert response.status_code == 403
    db_session.refresh(application)
    assert application.status == ApplicationStatus.PENDING


def test_status_update_validates_status(client: TestClient, donor):
    response = client.put(
        "/api/applications/any/status",
        headers=auth_headers(donor),
        json={"status": "ACCEPTED"},
    )

    assert response.status_code == 422


def test_get_application_visibility(
    client: TestClient, verified_youth, donor, make_user, make_opportunity
):
    opportunity = make_opportunity(donor)
    application_id = _apply(client, verified_youth, opportunity.id).json()["id"]
    stranger = make_user(UserRole.YOUTH)

    assert client.get(
        f"/api/applications/{application_id}", headers=auth_headers(verified_youth)
    ).status_code == 200
    assert client.get(
        f"/api/applications/{application_id}", headers=auth_headers(donor)
    ).status_code == 200
    assert client.get(
        f"/api/applications/{application_id}", headers=auth_headers(stranger)
    ).status_code == 403
    assert client.get(
        "/api/applications/missing", headers=auth_headers(donor)
    ).status_code == 404


def test_application_document_schema_defaults_to_attachment():
    doc = schemas.ApplicationDocument(file_name="cv.pdf", file_url="https://files.youthlink.org/cv.pdf")

    assert doc.type == DocumentType.ATTACHMENT
