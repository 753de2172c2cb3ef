from fastapi import APIRouter, Depends, HTTPException, Request, status

from quotedesk.errors import IndicesUnavailableError, InvalidSymbolError
from quotedesk.schemas.quote import IndexRecord, QuoteRecord, utcnow
from quotedesk.services.quotes import QuoteService

router = APIRouter()


def get_quote_service(request: Request) -> QuoteService:
    return request.app.state.quote_service


def _split_symbols(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _bad_request(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"status": "ERROR", "message": message},
    )


@router.get("/status")
def api_status() -> dict:
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "message": "Stock quote API is running",
    }


@router.get("/stock/{symbol}", response_model=QuoteRecord)
async def get_stock_endpoint(
    symbol: str, service: QuoteService = Depends(get_quote_service)
) -> QuoteRecord:
    try:
        return await service.get_quote(symbol)
    except InvalidSymbolError as exc:
        raise _bad_request(str(exc)) from exc


@router.get("/stocks", response_model=list[QuoteRecord])
async def get_stocks_endpoint(
    symbols: str | None = None, service: QuoteService = Depends(get_quote_service)
) -> list[QuoteRecord]:
    symbol_list = _split_symbols(symbols)
    if not symbol_list:
        raise _bad_request("Please provide stock symbols as query parameter")
    return await service.get_quotes(symbol_list)


@router.get("/indices", response_model=list[IndexRecord])
async def get_indices_endpoint(
    service: QuoteService = Depends(get_quote_service),
) -> list[IndexRecord]:
    try:
        return await service.get_indices()
    except IndicesUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"status": "ERROR", "message": "Failed to get market indices"},
        ) from exc
