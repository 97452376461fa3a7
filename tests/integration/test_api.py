"""
Integration tests - HTTP API over the SQL repositories.
"""

from decimal import Decimal

COMPANY_ID = "company-1"
HEADERS = {"X-Company-Id": COMPANY_ID, "X-User-Id": "user-1"}

PAYMENT = {
    "date": "2025-01-15",
    "amount": "150",
    "cash_account_id": "cash-001",
    "expense_account_id": "expense-001",
}


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestVoucherEndpoints:

    def test_post_payment(self, client):
        response = client.post("/api/v1/vouchers/payments", json=PAYMENT, headers=HEADERS)

        assert response.status_code == 201
        body = response.json()
        assert body["voucher_no"] == "PAY-2025-001"
        assert body["type"] == "payment"
        assert body["status"] == "draft"
        assert body["created_by"] == "user-1"
        assert Decimal(body["exchange_rate"]) == Decimal("1")
        assert Decimal(body["total_debit"]) == Decimal(body["total_credit"]) == Decimal("150")
        assert body["is_balanced"] is True
        assert [line["side"] for line in body["lines"]] == ["Debit", "Credit"]

    def test_company_header_required(self, client):
        response = client.post("/api/v1/vouchers/payments", json=PAYMENT)
        assert response.status_code == 400
        assert response.json()["detail"] == "X-Company-Id header is missing"

    def test_user_defaults_to_system(self, client):
        response = client.post(
            "/api/v1/vouchers/payments", json=PAYMENT, headers={"X-Company-Id": COMPANY_ID}
        )
        assert response.json()["created_by"] == "system"

    def test_validation_errors_listed(self, client):
        payload = {**PAYMENT, "amount": "-5", "expense_account_id": ""}
        response = client.post("/api/v1/vouchers/payments", json=payload, headers=HEADERS)

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert "Amount must be greater than zero" in errors
        assert "Expense/Payable account is required" in errors

    def test_unbalanced_journal_entry(self, client):
        payload = {
            "date": "2025-01-15",
            "lines": [
                {"account_id": "a", "debit": "100"},
                {"account_id": "b", "credit": "80"},
            ],
        }
        response = client.post("/api/v1/vouchers/journal-entries", json=payload, headers=HEADERS)

        assert response.status_code == 400
        assert "Entry is not balanced" in response.json()["detail"]

    def test_missing_rate_has_its_own_error(self, client):
        payload = {**PAYMENT, "currency": "GBP"}
        response = client.post("/api/v1/vouchers/payments", json=payload, headers=HEADERS)

        assert response.status_code == 422
        assert response.json() == {
            "code": "EXCHANGE_RATE_NOT_FOUND",
            "detail": "Exchange rate not found for GBP/USD on 2025-01-15",
            "from_currency": "GBP",
            "to_currency": "USD",
            "rate_date": "2025-01-15",
        }

    def test_foreign_receipt_after_enabling_currency(self, client):
        client.post(
            "/api/v1/company/currencies",
            json={"currency_code": "EUR", "initial_rate": "1.10", "rate_date": "2025-01-01"},
            headers=HEADERS,
        )
        payload = {
            "date": "2025-01-15",
            "amount": "200",
            "cash_account_id": "bank-eur",
            "revenue_account_id": "sales",
            "currency": "EUR",
        }
        response = client.post("/api/v1/vouchers/receipts", json=payload, headers=HEADERS)

        assert response.status_code == 201
        body = response.json()
        assert body["voucher_no"] == "REC-2025-001"
        assert body["currency"] == "EUR"
        assert Decimal(body["total_debit"]) == Decimal("220")

    def test_opening_balance(self, client):
        payload = {
            "date": "2025-01-01",
            "lines": [
                {"account_id": "cash", "debit": "5000"},
                {"account_id": "equity", "credit": "5000"},
            ],
        }
        response = client.post("/api/v1/vouchers/opening-balances", json=payload, headers=HEADERS)
        assert response.status_code == 201
        assert response.json()["voucher_no"] == "OB-2025-001"

    def test_get_and_list(self, client):
        created = client.post("/api/v1/vouchers/payments", json=PAYMENT, headers=HEADERS).json()

        fetched = client.get(f"/api/v1/vouchers/{created['id']}", headers=HEADERS)
        listed = client.get("/api/v1/vouchers", params={"voucher_type": "payment"}, headers=HEADERS)
        other_tenant = client.get(f"/api/v1/vouchers/{created['id']}", headers={"X-Company-Id": "company-2"})

        assert fetched.status_code == 200
        assert fetched.json()["voucher_no"] == "PAY-2025-001"
        assert [v["id"] for v in listed.json()] == [created["id"]]
        assert other_tenant.status_code == 404


class TestCurrencyEndpoints:

    def test_catalog(self, client):
        response = client.get("/api/v1/currencies")
        codes = {c["code"]: c for c in response.json()}
        assert codes["JPY"]["decimal_places"] == 0
        assert codes["KWD"]["decimal_places"] == 3

    def test_enable_list_disable(self, client):
        enabled = client.post(
            "/api/v1/company/currencies",
            json={"currency_code": "EUR", "initial_rate": "1.10"},
            headers=HEADERS,
        )
        assert enabled.status_code == 201
        assert enabled.json()["is_base"] is False

        listed = client.get("/api/v1/company/currencies", headers=HEADERS).json()
        assert [c["currency_code"] for c in listed] == ["EUR"]

        removed = client.delete("/api/v1/company/currencies/EUR", headers=HEADERS)
        assert removed.status_code == 204
        assert client.get("/api/v1/company/currencies", headers=HEADERS).json() == []

    def test_base_currency_cannot_be_disabled(self, client):
        response = client.delete("/api/v1/company/currencies/USD", headers=HEADERS)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot disable the base currency"

    def test_base_currency_rate_must_be_one(self, client):
        response = client.post(
            "/api/v1/company/currencies",
            json={"currency_code": "USD", "initial_rate": "2"},
            headers=HEADERS,
        )
        assert response.status_code == 400


class TestExchangeRateEndpoints:

    def test_save_returns_warnings(self, client):
        first = client.post(
            "/api/v1/exchange-rates",
            json={"from_currency": "EUR", "rate": "1.10", "rate_date": "2025-01-14"},
            headers=HEADERS,
        )
        second = client.post(
            "/api/v1/exchange-rates",
            json={"from_currency": "EUR", "rate": "11.0", "rate_date": "2025-01-15"},
            headers=HEADERS,
        )

        assert first.status_code == 201
        assert [w["type"] for w in first.json()["warnings"]] == ["FIRST_RATE"]
        assert first.json()["rate"]["source"] == "REFERENCE"
        assert first.json()["rate"]["to_currency"] == "USD"
        assert "DECIMAL_SHIFT" in [w["type"] for w in second.json()["warnings"]]

    def test_non_positive_rate(self, client):
        response = client.post(
            "/api/v1/exchange-rates",
            json={"from_currency": "EUR", "rate": "0", "rate_date": "2025-01-15"},
            headers=HEADERS,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Exchange rate must be positive"

    def test_suggested_rate(self, client):
        client.post(
            "/api/v1/exchange-rates",
            json={"from_currency": "EUR", "rate": "1.10", "rate_date": "2025-01-10"},
            headers=HEADERS,
        )

        found = client.get(
            "/api/v1/exchange-rates/suggested",
            params={"from_currency": "EUR", "rate_date": "2025-02-01"},
            headers=HEADERS,
        ).json()
        missing = client.get(
            "/api/v1/exchange-rates/suggested",
            params={"from_currency": "GBP", "rate_date": "2025-02-01"},
            headers=HEADERS,
        ).json()

        assert found["source"] == "MOST_RECENT"
        assert found["from_currency"] == "EUR"
        assert found["to_currency"] == "USD"
        assert Decimal(found["rate"]) == Decimal("1.10")
        assert found["effective_date"] == "2025-01-10"
        assert missing["source"] == "NONE"
        assert missing["rate"] is None

    def test_deviation_check_and_history(self, client):
        for day, rate in (("10", "1.00"), ("11", "1.20")):
            client.post(
                "/api/v1/exchange-rates",
                json={"from_currency": "EUR", "rate": rate, "rate_date": f"2025-01-{day}"},
                headers=HEADERS,
            )

        warnings = client.post(
            "/api/v1/exchange-rates/deviations",
            json={"from_currency": "EUR", "rate": "1.50"},
            headers=HEADERS,
        ).json()
        history = client.get(
            "/api/v1/exchange-rates/history", params={"from_currency": "EUR", "limit": 1}, headers=HEADERS
        ).json()

        assert [w["type"] for w in warnings] == ["PERCENTAGE_DEVIATION"]
        assert [Decimal(r["rate"]) for r in history] == [Decimal("1.20")]
