from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from chartview.options import ScaleConfig
from chartview.scales import Scale, create_scale, infer_scale_type


LOGGER = logging.getLogger(__name__)

Record = Mapping[str, Any]


def column(data: Sequence[Record], field: str) -> list[Any]:
    return [record.get(field) for record in data]


class ScaleController:
    """Owns the field -> Scale mapping for one View.

    A field absent from both the declared configs and the data resolves to an
    identity scale with an empty domain. Geometry bound to it renders at the
    clamped origin instead of raising, so a chart with a misspelled field is
    still visible while being authored.
    """

    def __init__(self, configs: Mapping[str, ScaleConfig] | None = None) -> None:
        self.configs: dict[str, ScaleConfig] = dict(configs or {})
        self.scales: dict[str, Scale] = {}

    def define_scale(self, field: str, config: ScaleConfig | Mapping[str, Any] | None = None) -> Scale:
        cfg = ScaleConfig.from_mapping(config)
        self.configs[field] = cfg
        scale = self.scales.get(field)
        if scale is not None and _same_kind(scale, cfg):
            scale.change(cfg)
            return scale
        values = scale._values if scale is not None else ()
        scale = create_scale(field, values, cfg)
        self.scales[field] = scale
        return scale

    def set_configs(self, configs: Mapping[str, ScaleConfig]) -> None:
        self.configs = dict(configs)
        for field, scale in list(self.scales.items()):
            cfg = self.configs.get(field, ScaleConfig())
            if _same_kind(scale, cfg):
                scale.change(cfg)
            else:
                self.scales[field] = create_scale(field, scale._values, cfg)

    def get_scale(self, field: str) -> Scale | None:
        return self.scales.get(field)

    def create_scale(self, field: str, data: Sequence[Record]) -> Scale:
        """Resolve ``field`` against ``data``, creating or refitting its scale."""
        values = column(data, field)
        cfg = self.configs.get(field)
        scale = self.scales.get(field)
        if scale is not None:
            wanted = cfg.type if cfg is not None else None
            if wanted is None and cfg is not None and cfg.values is not None:
                wanted = "cat"
            if wanted is None:
                wanted = infer_scale_type(values)
                # An empty refit keeps the kind the field was last fitted as.
                if wanted == "identity" and scale.type != "identity":
                    wanted = scale.type
            if wanted == scale.type:
                scale.fit(values)
                return scale
        if cfg is None:
            LOGGER.debug("no scale config for %r; inferring from data", field)
        scale = create_scale(field, values, cfg)
        if scale.type == "identity":
            LOGGER.debug("field %r not present in data; using degenerate identity scale", field)
        self.scales[field] = scale
        return scale

    def update_scales(self, data: Sequence[Record], fields: Iterable[str] | None = None) -> dict[str, Scale]:
        wanted = list(dict.fromkeys(fields if fields is not None else self.scales))
        for field in wanted:
            self.create_scale(field, data)
        return {field: self.scales[field] for field in wanted}

    def clear(self) -> None:
        self.scales.clear()


def _same_kind(scale: Scale, cfg: ScaleConfig) -> bool:
    if cfg.type is None:
        return cfg.values is None or scale.type == "cat"
    return scale.type == cfg.type
