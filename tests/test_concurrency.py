import uuid

import pytest
from sqlalchemy.orm import Session

from feedback_service.errors import Conflict, InvalidCredential
from feedback_service.extensions import db
from feedback_service.models import Feedback
from feedback_service.services.api_keys import authenticate, rotate_api_key
from feedback_service.services.feedback import update_feedback
from conftest import API, submit


def _works(session, key) -> bool:
    try:
        authenticate(session, key)
        return True
    except InvalidCredential:
        return False


def test_second_writer_gets_conflict_instead_of_lost_update(app, client, application):
    fid = submit(client, application["api_key"]).get_json()["id"]

    with app.app_context():
        first, second = Session(db.engine), Session(db.engine)
        try:
            # Both operators loaded the same version
            first.get(Feedback, uuid.UUID(fid))
            second.get(Feedback, uuid.UUID(fid))

            update_feedback(first, fid, {"status": "in_progress"})
            first.commit()

            with pytest.raises(Conflict):
                update_feedback(second, fid, {"status": "closed"})
        finally:
            first.close()
            second.close()

        fb = db.session.get(Feedback, uuid.UUID(fid))
        assert fb.status == "in_progress"
        assert fb.version == 2


def test_rotation_swaps_keys_without_overlap_or_gap(app, application):
    with app.app_context():
        writer, reader = Session(db.engine), Session(db.engine)
        try:
            current = application["api_key"]
            for _ in range(3):
                new_key = rotate_api_key(writer, application["id"])
                # Inside the rotating transaction exactly one key authenticates
                assert (_works(writer, current), _works(writer, new_key)) == (False, True)
                writer.commit()

                assert (_works(reader, current), _works(reader, new_key)) == (False, True)
                reader.rollback()
                current = new_key
        finally:
            writer.close()
            reader.close()


def test_rotation_then_http_auth(client, admin, application):
    r = client.post(f"{API}/applications/{application['id']}/regenerate-key", headers=admin["headers"])
    new_key = r.get_json()["api_key"]
    results = [submit(client, k).status_code for k in (application["api_key"], new_key)]
    assert results == [401, 201]
