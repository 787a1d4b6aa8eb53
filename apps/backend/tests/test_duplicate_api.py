def _txn_payload(seed, **overrides):
    payload = {
        "type": "expense",
        "amount": 15000,
        "description": "스타벅스 강남점",
        "date": "2024-03-10",
        "payment_method": "신용카드",
        "person_type": "member",
        "person_id": seed.owner_id,
    }
    payload.update(overrides)
    return payload


def _create(client, seed, **overrides):
    r = client.post(
        f"/api/households/{seed.household_id}/transactions",
        json=_txn_payload(seed, **overrides),
    )
    assert r.status_code == 201, r.text
    return r


def test_create_reports_duplicate_candidates_header(client, seed):
    first = _create(client, seed)
    assert first.headers["X-Duplicate-Candidates"] == "0"

    # 중복이어도 저장은 막지 않음
    second = _create(client, seed)
    assert second.headers["X-Duplicate-Candidates"] == "1"

    r = client.get(f"/api/households/{seed.household_id}/transactions")
    assert len(r.json()) == 2


def test_check_finds_similar_branch(client, seed):
    existing = _create(client, seed).json()

    r = client.post(
        f"/api/households/{seed.household_id}/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed, description="스타벅스 역삼점", date="2024-03-11")},
    )
    assert r.status_code == 200, r.text
    body = r.json()

    assert len(body["matches"]) == 1
    match = body["matches"][0]
    assert match["transaction"]["id"] == existing["id"]
    assert match["transaction"]["amount_display"] == "₩15,000"
    assert match["similarity"] > 0.6
    assert match["reasons"][0] == "동일한 금액 (15,000원)"
    assert "1일 차이" in match["reasons"]
    assert "동일한 결제 방법 (신용카드)" in match["reasons"]
    assert "동일한 사용자" in match["reasons"]

    warning = body["warning"]
    assert warning["level"] == "high"
    assert "확률로 중복 거래일 수 있습니다" in warning["message"]
    assert warning["top_match"]["transaction"]["id"] == existing["id"]
    assert warning["additional_count"] == 0


def test_check_with_no_history(client, seed):
    r = client.post(
        f"/api/households/{seed.household_id}/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed)},
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"matches": [], "warning": None}


def test_check_ignores_other_type(client, seed):
    _create(client, seed)

    r = client.post(
        f"/api/households/{seed.household_id}/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed, type="income")},
    )
    assert r.json()["matches"] == []


def test_check_ignores_other_households(client, seed):
    _create(client, seed)
    other = client.post("/api/households", json={"name": "옆집"}).json()

    r = client.post(
        f"/api/households/{other['id']}/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed, person_type="household")},
    )
    assert r.json()["matches"] == []


def test_check_excludes_transaction_being_edited(client, seed):
    existing = _create(client, seed).json()

    r = client.post(
        f"/api/households/{seed.household_id}/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed), "exclude_id": existing["id"]},
    )
    assert r.json()["matches"] == []


def test_check_option_overrides(client, seed):
    _create(client, seed)
    payload = {
        "transaction": _txn_payload(seed, description="스타벅스 역삼점", date="2024-03-11"),
        "options": {"enable_smart_detection": False},
    }

    r = client.post(f"/api/households/{seed.household_id}/transactions/duplicates/check", json=payload)
    reasons = r.json()["matches"][0]["reasons"]
    assert not any(reason.startswith("동일한 결제 방법") for reason in reasons)
    assert "동일한 사용자" not in reasons

    # 날짜 제외, 설명 75% < 90% 기준이라 금액 사유 하나만 남음
    payload["options"] = {"enable_smart_detection": False, "date_tolerance": 0, "description_threshold": 0.9}
    r = client.post(f"/api/households/{seed.household_id}/transactions/duplicates/check", json=payload)
    assert r.json()["matches"] == []


def test_check_rejects_invalid_options(client, seed):
    r = client.post(
        f"/api/households/{seed.household_id}/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed), "options": {"description_threshold": 1.5}},
    )
    assert r.status_code == 422


def test_check_rejects_non_positive_amount(client, seed):
    r = client.post(
        f"/api/households/{seed.household_id}/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed, amount=0)},
    )
    assert r.status_code == 422
    assert "올바른 금액을 입력하세요" in r.json()["detail"][0]["msg"]


def test_check_unknown_household(client, seed):
    r = client.post(
        "/api/households/9999/transactions/duplicates/check",
        json={"transaction": _txn_payload(seed)},
    )
    assert r.status_code == 404


def test_quick_check(client, seed):
    _create(client, seed)
    url = f"/api/households/{seed.household_id}/transactions/duplicates/quick-check"

    r = client.post(url, json={"transaction": _txn_payload(seed)})
    assert r.status_code == 200, r.text
    assert r.json() == {"has_likely_duplicate": True}

    r = client.post(url, json={"transaction": _txn_payload(seed, amount=52000, description="SK 주유소", date="2024-03-20")})
    assert r.json() == {"has_likely_duplicate": False}


def test_quick_check_honors_option_overrides(client, seed):
    _create(client, seed)
    url = f"/api/households/{seed.household_id}/transactions/duplicates/quick-check"
    payload = {"transaction": _txn_payload(seed), "options": {"match_threshold": 5.0}}

    r = client.post(url, json=payload)
    assert r.status_code == 200, r.text
    assert r.json() == {"has_likely_duplicate": False}

    r = client.post(f"/api/households/{seed.household_id}/transactions/duplicates/check", json=payload)
    assert r.json()["matches"] == []

    # 감지 기준은 엄격 모드로 고정되지만 사유 개수 조건은 요청 값을 따름
    payload["options"] = {"min_reasons": 6}
    r = client.post(url, json=payload)
    assert r.json() == {"has_likely_duplicate": False}
