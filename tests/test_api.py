"""End-to-end REST tests: tenancy, plan limits, invites, reveal and webhook."""

from __future__ import annotations

import uuid

from _helpers import first_org_id, register

from inventra_service.settings import settings

API = "/api/v1"


def _owner_with_org(client, email="owner@acme.test", org="Acme"):
    headers = register(client, email, org_name=org)
    return headers, first_org_id(client, headers)


def _invite_and_join(client, owner_headers, org_id, email, role="member"):
    invite = client.post(f"{API}/orgs/{org_id}/invites", headers=owner_headers, json={"email": email, "role": role})
    assert invite.status_code == 201, invite.text
    headers = register(client, email)
    accepted = client.post(f"{API}/invites/{invite.json()['token']}/accept", headers=headers)
    assert accepted.status_code == 200, accepted.text
    return headers


def test_cross_tenant_reads_are_denied(client):
    acme_headers, acme_id = _owner_with_org(client)
    globex_headers, _ = _owner_with_org(client, "boss@globex.test", "Globex")
    asset = client.post(
        f"{API}/orgs/{acme_id}/assets", headers=acme_headers, json={"name": "Laptop", "category": "laptop"}
    ).json()

    for path in (
        f"/orgs/{acme_id}",
        f"/orgs/{acme_id}/assets",
        f"/orgs/{acme_id}/assets/{asset['id']}",
        f"/orgs/{acme_id}/licenses",
        f"/orgs/{acme_id}/members",
        f"/orgs/{acme_id}/requests",
    ):
        resp = client.get(API + path, headers=globex_headers)
        assert resp.status_code == 403, path
        assert resp.json()["detail"] == "Access denied"

    # Same answer for an organization that does not exist
    resp = client.get(f"{API}/orgs/{uuid.uuid4()}", headers=globex_headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Access denied"


def test_cross_tenant_writes_are_denied(client):
    acme_headers, acme_id = _owner_with_org(client)
    globex_headers, _ = _owner_with_org(client, "boss@globex.test", "Globex")
    asset = client.post(
        f"{API}/orgs/{acme_id}/assets", headers=acme_headers, json={"name": "Laptop", "category": "laptop"}
    ).json()
    lic = client.post(
        f"{API}/orgs/{acme_id}/licenses",
        headers=acme_headers,
        json={"product": "github", "seat_key_full": "GH-KEY-0042"},
    ).json()

    attempts = [
        ("post", f"/orgs/{acme_id}/assets", {"name": "Planted", "category": "other"}),
        ("patch", f"/orgs/{acme_id}/assets/{asset['id']}", {"name": "Hijacked"}),
        ("delete", f"/orgs/{acme_id}/assets/{asset['id']}", None),
        ("post", f"/orgs/{acme_id}/assets/{asset['id']}/check-out", None),
        ("post", f"/orgs/{acme_id}/licenses/{lic['id']}/reveal", None),
        ("delete", f"/orgs/{acme_id}/licenses/{lic['id']}", None),
        ("post", f"/orgs/{acme_id}/invites", {"email": "mole@globex.test"}),
        ("patch", f"/orgs/{acme_id}", {"name": "Globex West"}),
        ("delete", f"/orgs/{acme_id}", None),
        ("get", f"/orgs/{acme_id}/audit", None),
        ("get", f"/orgs/{acme_id}/audit/export", None),
    ]
    for method, path, body in attempts:
        kwargs = {"headers": globex_headers}
        if body is not None:
            kwargs["json"] = body
        resp = client.request(method.upper(), API + path, **kwargs)
        assert resp.status_code == 403, (method, path)
        assert resp.json()["detail"] == "Access denied"
        assert "GH-KEY-0042" not in resp.text

    # Acme's rows are untouched
    assert client.get(f"{API}/orgs/{acme_id}/assets/{asset['id']}", headers=acme_headers).json()["name"] == "Laptop"
    assert len(client.get(f"{API}/orgs/{acme_id}/assets", headers=acme_headers).json()) == 1
    assert client.get(f"{API}/orgs/{acme_id}", headers=acme_headers).json()["name"] == "Acme"
    assert client.get(f"{API}/orgs/{acme_id}/invites", headers=acme_headers).json() == []


def test_asset_limit_error_body(client):
    headers, org_id = _owner_with_org(client)
    for i in range(10):
        resp = client.post(f"{API}/orgs/{org_id}/assets", headers=headers, json={"name": f"A{i}", "category": "other"})
        assert resp.status_code == 201

    resp = client.post(f"{API}/orgs/{org_id}/assets", headers=headers, json={"name": "A10", "category": "other"})
    assert resp.status_code == 402
    body = resp.json()
    assert body["code"] == "limit_exceeded"
    assert body["limit"] == 10
    assert body["upgrade"] is True

    usage = client.get(f"{API}/orgs/{org_id}/usage", headers=headers).json()
    assert usage["usage"]["asset"] == {
        "count": 10,
        "limit": 10,
        "remaining": 0,
        "percentage": 100,
        "can_create": False,
    }


def test_invite_flow_and_member_permissions(client):
    owner, org_id = _owner_with_org(client)
    preview_email = "user@x.com"
    invite = client.post(f"{API}/orgs/{org_id}/invites", headers=owner, json={"email": preview_email}).json()

    preview = client.get(f"{API}/invites/{invite['token']}")
    assert preview.status_code == 200
    assert preview.json()["state"] == "pending"
    assert preview.json()["organization_name"] == "Acme"

    member = register(client, "USER@x.com")
    resp = client.post(f"{API}/invites/{invite['token']}/accept", headers=member)
    assert resp.status_code == 200
    assert resp.json()["role"] == "member"
    again = client.post(f"{API}/invites/{invite['token']}/accept", headers=member)
    assert again.status_code == 409

    members = client.get(f"{API}/orgs/{org_id}/members", headers=member).json()
    assert sorted(m["role"] for m in members) == ["member", "owner"]

    # Members can read but not create
    assert client.get(f"{API}/orgs/{org_id}/assets", headers=member).status_code == 200
    resp = client.post(f"{API}/orgs/{org_id}/assets", headers=member, json={"name": "X", "category": "other"})
    assert resp.status_code == 403


def test_license_reveal_is_admin_only(client):
    owner, org_id = _owner_with_org(client)
    member = _invite_and_join(client, owner, org_id, "m@x.com")
    lic = client.post(
        f"{API}/orgs/{org_id}/licenses",
        headers=owner,
        json={"product": "office_365", "seat_key_full": "ABCD-1234-WXYZ-9999"},
    ).json()
    assert lic["seat_key_masked"] == "****-****-****-9999"
    assert "seat_key_full" not in lic

    listed = client.get(f"{API}/orgs/{org_id}/licenses", headers=member)
    assert "ABCD-1234" not in listed.text

    denied = client.post(f"{API}/orgs/{org_id}/licenses/{lic['id']}/reveal", headers=member)
    assert denied.status_code == 403
    assert "ABCD-1234" not in denied.text

    revealed = client.post(f"{API}/orgs/{org_id}/licenses/{lic['id']}/reveal", headers=owner)
    assert revealed.status_code == 200
    assert revealed.json()["seat_key_full"] == "ABCD-1234-WXYZ-9999"
    assert revealed.json()["visible_seconds"] == settings.key_reveal_seconds
    assert revealed.headers["cache-control"] == "no-store"

    history = client.get(f"{API}/orgs/{org_id}/licenses/{lic['id']}/history", headers=member).json()
    assert history[0]["action"] == "reveal_key"


def test_audit_and_import_are_plan_gated(client):
    headers, org_id = _owner_with_org(client)
    resp = client.get(f"{API}/orgs/{org_id}/audit", headers=headers)
    assert resp.status_code == 402
    assert resp.json()["feature"] == "audit_log"

    resp = client.post(f"{API}/orgs/{org_id}/import/assets", headers=headers, json={"csv": "name,category\nA,laptop\n"})
    assert resp.status_code == 402


def test_webhook_upgrades_owner_and_unlocks_features(client):
    headers, org_id = _owner_with_org(client)
    event = {
        "type": "membership.started",
        "data": {"supporter_email": "owner@acme.test", "membership_level_price": 29},
    }
    resp = client.post(f"{API}/webhooks/payments", json=event)
    assert resp.status_code == 200
    assert resp.json()["applied"] is True

    sub = client.get(f"{API}/orgs/{org_id}/subscription", headers=headers).json()
    assert sub["plan"] == "pro"

    csv_text = "name,category,serial_number,location,notes\nA,laptop,,,\nB,bogus,,,\nC,dock,,,\n"
    report = client.post(f"{API}/orgs/{org_id}/import/assets", headers=headers, json={"csv": csv_text}).json()
    assert report["created"] == 2
    assert report["errors"][0]["line"] == 3

    audit = client.get(f"{API}/orgs/{org_id}/audit", headers=headers).json()
    assert audit["total"] == 2

    export = client.get(f"{API}/orgs/{org_id}/audit/export", headers=headers)
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert "audit_log_" in export.headers["content-disposition"]


def test_webhook_status_codes(client, monkeypatch):
    resp = client.post(f"{API}/webhooks/payments", json={"type": "membership.started", "data": {}})
    assert resp.status_code == 400

    resp = client.post(
        f"{API}/webhooks/payments",
        json={"type": "membership.started", "data": {"supporter_email": "nobody@x.com"}},
    )
    assert resp.status_code == 200
    assert resp.json()["applied"] is False

    monkeypatch.setattr(settings, "webhook_secret", "s3cret")
    event = {"type": "membership.cancelled", "data": {"supporter_email": "nobody@x.com"}}
    assert client.post(f"{API}/webhooks/payments", json=event).status_code == 401
    ok = client.post(f"{API}/webhooks/payments", json=event, headers={"X-Webhook-Secret": "s3cret"})
    assert ok.status_code == 200


def test_check_out_flow_over_http(client):
    owner, org_id = _owner_with_org(client)
    member = _invite_and_join(client, owner, org_id, "m@x.com")
    asset = client.post(f"{API}/orgs/{org_id}/assets", headers=owner, json={"name": "Dock", "category": "dock"}).json()

    out = client.post(f"{API}/orgs/{org_id}/assets/{asset['id']}/check-out", headers=member)
    assert out.status_code == 200
    assert out.json()["status"] == "assigned"
    assert client.post(f"{API}/orgs/{org_id}/assets/{asset['id']}/check-out", headers=owner).status_code == 409

    back = client.post(f"{API}/orgs/{org_id}/assets/{asset['id']}/check-in", headers=member)
    assert back.json()["status"] == "available"

    missing = client.get(f"{API}/orgs/{org_id}/assets/{uuid.uuid4()}", headers=owner)
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"
