"""Tests for REST error response models."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from dealer_finance.domain.errors import InvalidAmountError
from dealer_finance.entrypoints.http.error_responses import ErrorDetail, ErrorResponse
from dealer_finance.entrypoints.http.exception_handlers import register_exception_handlers


class TestErrorDetail:
    def test_code_is_optional(self) -> None:
        detail = ErrorDetail(field="monthly_income", message="Must be > 0")

        assert detail.model_dump() == {
            "field": "monthly_income",
            "message": "Must be > 0",
            "code": None,
        }

    def test_serializes_to_json(self) -> None:
        detail = ErrorDetail(
            field="amount", message="Must be a valid decimal: ten", code="INVALID_DECIMAL"
        )

        json_str = detail.model_dump_json()

        assert '"field":"amount"' in json_str
        assert '"code":"INVALID_DECIMAL"' in json_str

    def test_example_is_valid(self) -> None:
        example = ErrorDetail.model_json_schema()["example"]

        detail = ErrorDetail.model_validate(example)

        assert detail.code == "INVALID_DECIMAL"


class TestErrorResponse:
    def test_simple_error(self) -> None:
        response = ErrorResponse(detail="Purchase with identifier 'p-1' not found", code="NOT_FOUND")

        assert response.model_dump() == {
            "detail": "Purchase with identifier 'p-1' not found",
            "code": "NOT_FOUND",
            "errors": None,
        }

    def test_parses_validation_error_from_dict(self) -> None:
        response = ErrorResponse.model_validate(
            {
                "detail": "Validation failed",
                "code": "INVALID_INPUT",
                "errors": [{"field": "current_debts", "message": "Must be >= 0"}],
            }
        )

        assert response.errors[0].field == "current_debts"
        assert response.errors[0].code is None

    def test_schema_examples_are_valid(self) -> None:
        examples = ErrorResponse.model_json_schema()["examples"]

        parsed = [ErrorResponse.model_validate(example) for example in examples]

        assert parsed[0].errors is None
        assert len(parsed[1].errors) == 2

    def test_documents_what_the_handlers_return(self) -> None:
        """A body produced by the exception handlers validates against ErrorResponse."""
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/pay")
        def pay() -> None:
            raise InvalidAmountError(
                errors=[{"field": "amount", "message": "Must be > 0", "code": "NON_POSITIVE"}]
            )

        body = TestClient(app, raise_server_exceptions=False).get("/pay").json()

        response = ErrorResponse.model_validate(body)
        assert response.code == "INVALID_AMOUNT"
        assert response.errors[0].code == "NON_POSITIVE"
