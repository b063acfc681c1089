"""
Extraction Layer for Price Collector.
Turns a parsed page into a ProductDraft, whichever site it came from.
"""
from datetime import datetime, timezone
from typing import Optional

from price_collector.adapters.dom import Document
from price_collector.config import config
from price_collector.extractors.base import guarded
from price_collector.extractors.generic import GenericExtractor
from price_collector.extractors.sites import extractor_for
from price_collector.extractors.structured_data import StructuredDataReader
from price_collector.layers.site_detection import SiteDetectionLayer
from price_collector.models.product import PartialDraft, ProductDraft, merge_partials
from price_collector.models.site import SiteFamily
from price_collector.utils.logger import LayerLogger


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO 8601 UTC instant with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ExtractionLayer:
    """
    Extraction Layer - picks the extractor and assembles the draft.

    This layer:
    - Identifies the site family from the page hostname
    - Runs the site profile, or the generic extractor for unknown sites
    - Optionally back-fills missing fields from the generic extractor
    - Never raises for page content; failed sources contribute nothing

    Site profiles always take priority over back-filled values.
    """

    def __init__(self):
        self.logger = LayerLogger("extraction_layer")
        self.site_detection = SiteDetectionLayer()
        self.generic = GenericExtractor()

    def extract(
        self,
        document: Document,
        backfill_with_generic: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> ProductDraft:
        """
        Extract a product draft from a parsed page.

        Args:
            document: The parsed page
            backfill_with_generic: Fill gaps from the generic extractor;
                defaults to ``Config.BACKFILL_WITH_GENERIC``
            now: Extraction instant (defaults to the current time)

        Returns:
            ProductDraft model
        """
        if backfill_with_generic is None:
            backfill_with_generic = config.BACKFILL_WITH_GENERIC

        url = document.url
        self.logger.log_action("extraction", "started", url=url)

        site = self.site_detection.detect(url)
        reader = StructuredDataReader(document)

        partials = []
        extractor = extractor_for(site.family)
        if extractor is not None:
            partials.append(self._run(site.family.value, lambda: extractor.extract(document, reader), url))
            if backfill_with_generic:
                self.logger.log_decision(
                    decision="backfill_with_generic",
                    reason="back-fill enabled for known site",
                    url=url,
                    site=site.family.value,
                )
                partials.append(self._run("generic", lambda: self.generic.extract(document, reader), url))
        else:
            self.logger.log_decision(
                decision="use_generic_extractor",
                reason="no profile for hostname",
                url=url,
                hostname=site.hostname,
            )
            partials.append(self._run("generic", lambda: self.generic.extract(document, reader), url))

        merged = merge_partials(*partials)
        draft = ProductDraft.from_partial(
            merged,
            site=site.label,
            url=url,
            timestamp=utc_timestamp(now),
        )

        self.logger.log_extraction(
            site=draft.site,
            fields_present=draft.get_present_fields(),
            fields_missing=draft.get_missing_fields(),
            url=url,
            backfill=bool(backfill_with_generic and site.family != SiteFamily.UNKNOWN),
        )
        return draft

    def _run(self, source: str, fn, url: str) -> PartialDraft:
        """A failing extractor degrades to an empty partial."""
        return guarded(self.logger, source, fn, url=url) or PartialDraft()
