"""
Request Handlers

One method per route. Each handler:
1. Resolves the principal from the request
2. Runs one management or report operation
3. Answers with an ApiResponse

DESIGN DECISION: Handlers hold no business rules. Access checks,
validation and store translation all happen below; a handler only maps
outcomes to status codes. Every LedgerError carries its own status, so
the mapping is a single except clause.
"""

from datetime import date
from typing import Any, Awaitable, Callable, Optional

import structlog
from pydantic import BaseModel, Field

from ledger.errors import LedgerError, StoreFailure
from ledger.management import TransactionManager, UserManager
from ledger.models.ledger import Principal
from ledger.reports import ReportService, export_filename, export_transactions_csv
from ledger.services.session import RequestContext, SessionResolverInterface


logger = structlog.get_logger(__name__)


class ApiResponse(BaseModel):
    """Status, JSON-compatible body and any extra headers."""

    status_code: int = 200
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)


def _error(status_code: int, message: str) -> ApiResponse:
    return ApiResponse(status_code=status_code, body={"error": message})


class LedgerApi:
    """HTTP-shaped entry points over the ledger services."""

    def __init__(
        self,
        session_resolver: SessionResolverInterface,
        transactions: TransactionManager,
        users: UserManager,
        reports: ReportService,
        csv_delimiter: str = ";",
    ):
        self._sessions = session_resolver
        self._transactions = transactions
        self._users = users
        self._reports = reports
        self._csv_delimiter = csv_delimiter

    async def _principal(self, request: RequestContext) -> Optional[Principal]:
        try:
            return await self._sessions.resolve(request)
        except Exception as e:
            logger.warning("session_resolution_failed", error=str(e))
            return None

    async def _run(
        self,
        request: RequestContext,
        operation: Callable[[Optional[Principal]], Awaitable[ApiResponse]],
    ) -> ApiResponse:
        principal = await self._principal(request)
        try:
            return await operation(principal)
        except LedgerError as e:
            if e.status_code >= 500:
                logger.error("request_failed", status_code=e.status_code, error=e.message)
            return _error(e.status_code, e.message)
        except Exception:
            logger.error("request_failed_unexpectedly", exc_info=True)
            return _error(500, StoreFailure().message)

    # ===== TRANSACTIONS =====

    async def get_transactions(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            transactions = await self._transactions.list_transactions(principal)
            return ApiResponse(body=[t.to_payload() for t in transactions])
        return await self._run(request, operation)

    async def post_transaction(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            created = await self._transactions.create_transaction(principal, request.body)
            return ApiResponse(status_code=201, body=created.to_payload())
        return await self._run(request, operation)

    async def get_transaction(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            transaction = await self._transactions.get_transaction(
                principal, request.path_params.get("id")
            )
            return ApiResponse(body=transaction.to_payload())
        return await self._run(request, operation)

    async def put_transaction(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            updated = await self._transactions.update_transaction(
                principal, request.path_params.get("id"), request.body
            )
            return ApiResponse(body=updated.to_payload())
        return await self._run(request, operation)

    async def delete_transaction(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            await self._transactions.delete_transaction(principal, request.path_params.get("id"))
            return ApiResponse(body={"message": "Transaction deleted"})
        return await self._run(request, operation)

    # ===== USERS =====

    async def get_users(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            users = await self._users.list_users(principal)
            return ApiResponse(body=[u.to_payload() for u in users])
        return await self._run(request, operation)

    async def put_user(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            updated = await self._users.update_user(
                principal, request.path_params.get("id"), request.body
            )
            return ApiResponse(body=updated.to_payload())
        return await self._run(request, operation)

    async def delete_user(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            await self._users.delete_user(principal, request.path_params.get("id"))
            return ApiResponse(body={"message": "User deleted"})
        return await self._run(request, operation)

    # ===== REPORTS =====

    async def get_report_summary(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            report = await self._reports.build_report(principal)
            return ApiResponse(body=report.to_payload())
        return await self._run(request, operation)

    async def get_report_export(self, request: RequestContext) -> ApiResponse:
        async def operation(principal):
            report = await self._reports.build_report(principal)
            filename = export_filename(date.today())
            return ApiResponse(
                body=export_transactions_csv(report.transactions, self._csv_delimiter),
                headers={
                    "Content-Type": "text/csv; charset=utf-8",
                    "Content-Disposition": f'attachment; filename="{filename}"',
                },
            )
        return await self._run(request, operation)

    # ===== ROUTING =====

    def routes(self) -> dict[str, dict[str, Callable[[RequestContext], Awaitable[ApiResponse]]]]:
        """Route template -> {method: handler}."""
        return {
            "/transactions": {
                "GET": self.get_transactions,
                "POST": self.post_transaction,
            },
            "/transactions/{id}": {
                "GET": self.get_transaction,
                "PUT": self.put_transaction,
                "DELETE": self.delete_transaction,
            },
            "/users": {
                "GET": self.get_users,
            },
            "/users/{id}": {
                "PUT": self.put_user,
                "DELETE": self.delete_user,
            },
            "/reports/summary": {
                "GET": self.get_report_summary,
            },
            "/reports/export": {
                "GET": self.get_report_export,
            },
        }

    async def dispatch(
        self,
        method: str,
        path: str,
        request: Optional[RequestContext] = None,
    ) -> ApiResponse:
        """
        Route a request by method and path.

        Unknown paths answer 404; known paths with an unsupported method
        answer 405 with an Allow header.
        """
        request = request or RequestContext()
        parts = [p for p in path.split("/") if p]

        for template, methods in self.routes().items():
            template_parts = [p for p in template.split("/") if p]
            if len(template_parts) != len(parts):
                continue
            params = {}
            for expected, actual in zip(template_parts, parts):
                if expected.startswith("{") and expected.endswith("}"):
                    params[expected[1:-1]] = actual
                elif expected != actual:
                    break
            else:
                handler = methods.get(method.upper())
                if handler is None:
                    response = _error(405, f"Method {method.upper()} not allowed")
                    response.headers["Allow"] = ", ".join(methods)
                    return response
                routed = request.model_copy(
                    update={"path_params": {**request.path_params, **params}}
                )
                return await handler(routed)

        return _error(404, f"No route for {path}")
