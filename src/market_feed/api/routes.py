from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..feed.client import FeedClient, get_feed_client

router = APIRouter()


@router.get("/snapshot")
async def read_snapshot(feed: FeedClient = Depends(get_feed_client)) -> dict[str, object]:
    return feed.snapshot().as_dict()


@router.get("/stats")
async def read_stats(feed: FeedClient = Depends(get_feed_client)) -> dict[str, int]:
    return feed.snapshot().counters.as_dict()


@router.get("/prices/{symbol}")
async def read_symbol(symbol: str, feed: FeedClient = Depends(get_feed_client)) -> dict[str, object]:
    snapshot = feed.snapshot()
    trade = snapshot.trades.get(symbol)
    ticker = snapshot.tickers.get(symbol)
    if trade is None and ticker is None:
        raise HTTPException(status_code=404, detail=f"No market data for {symbol}")
    return {
        "symbol": symbol,
        "livePrice": trade.as_dict() if trade else None,
        "tickerStats": ticker.as_dict() if ticker else None,
    }
