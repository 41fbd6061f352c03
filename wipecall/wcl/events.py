"""Paginated WCL events API fetcher."""

import logging

from wipecall.wcl.queries import REPORT_EVENTS

logger = logging.getLogger(__name__)

MAX_PAGES = 100


async def fetch_all_events(
    wcl,
    report_code: str,
    fight_id: int,
    start_time: float,
    end_time: float,
    data_type: str,
    *,
    max_pages: int = MAX_PAGES,
):
    """Yield event pages for one fight as lists of raw event dicts.

    Args:
        wcl: WCLClient instance.
        report_code: WCL report code.
        fight_id: WCL fight id the events are restricted to.
        start_time: Fight start timestamp (ms).
        end_time: Fight end timestamp (ms).
        data_type: WCL EventDataType (e.g. "Deaths").
        max_pages: Maximum number of pages to fetch (safety limit).
    """
    current_start = start_time
    total_fetched = 0
    page_count = 0

    while True:
        raw = await wcl.query(REPORT_EVENTS, variables={
            "code": report_code,
            "fightIDs": [fight_id],
            "startTime": current_start,
            "endTime": end_time,
            "dataType": data_type,
        })
        events_data = raw["reportData"]["report"]["events"]

        page_events = events_data.get("data") or []
        total_fetched += len(page_events)
        page_count += 1
        if page_events:
            yield page_events

        next_page = events_data.get("nextPageTimestamp")
        if next_page is None:
            break

        if next_page <= current_start:
            logger.warning(
                "Stuck pagination for %s %s: nextPageTimestamp %d <= current %d, "
                "stopping after %d pages (%d events)",
                report_code, data_type, next_page, current_start,
                page_count, total_fetched,
            )
            break

        if page_count >= max_pages:
            logger.warning(
                "Max pages (%d) reached for %s %s, stopping with %d events",
                max_pages, report_code, data_type, total_fetched,
            )
            break

        current_start = next_page

    logger.debug(
        "Fetched %d %s events for fight %d in %s (%d pages)",
        total_fetched, data_type, fight_id, report_code, page_count,
    )
