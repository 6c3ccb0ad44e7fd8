# -*- coding: utf-8 -*-
"""
main.py — command-line driver over synthetic storms

    python -m storm_tracks.main --storms 3 --time-offset-h 12 --zoom 5

Builds demo storms, runs them through validation, the timeline, track
simplification, the forecast cone and the animation scheduler via
``StormLayer``, and logs one summary line per storm.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Optional

import geopandas as gpd

from .config import VISUALIZATION_MODES, Config
from .helpers import MS_PER_HOUR, _log_header, _log_processed, setup_logging
from .layers import GEOMETRY_COLUMNS, StormLayer
from .synthetic import ANCHOR_MS, make_storms
from .timeline import PLAYBACK_SPEEDS, advance_time


# =============================================================================
# CLI
# =============================================================================

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="storm_tracks",
        description="Storm track timeline, simplification and forecast cone demo",
    )
    p.add_argument("--storms", type=int, default=3, help="Number of synthetic storms")
    p.add_argument("--seed", type=int, default=7, help="Random seed for synthetic tracks")
    p.add_argument("--time-offset-h", type=float, default=0.0,
                   help="Timeline position, hours relative to the storms' current fix")
    p.add_argument("--play-s", type=float, default=0.0,
                   help="Seconds of playback to simulate after scrubbing")
    p.add_argument("--speed", type=float, default=1.0, choices=list(PLAYBACK_SPEEDS))
    p.add_argument("--zoom", type=float, default=5.0, help="Map zoom level")

    # Engine tunables
    p.add_argument("--mode", type=str, default=None, choices=list(VISUALIZATION_MODES))
    p.add_argument("--tolerance", type=float, default=None, help="Simplification tolerance (degrees)")
    p.add_argument("--max-animations", type=int, default=None)
    p.add_argument("--env-file", type=Path, help="Optional .env with STORM_TRACKS_* settings")

    # Output
    p.add_argument("--out-csv", type=Path, help="Optional CSV of frame attributes (utf-8)")

    # Logging
    p.add_argument("--log-level", type=str, default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--log-file", type=Path, help="Optional utf-8 log file path")
    return p


def cfg_from_args(args: argparse.Namespace) -> Config:
    overrides = {
        "visualization_mode": args.mode,
        "simplification_tolerance": args.tolerance,
        "max_simultaneous_animations": args.max_animations,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return Config.from_env(args.env_file, **{k: v for k, v in overrides.items() if v is not None})


def write_outputs(gdf: gpd.GeoDataFrame, out_csv: Optional[Path]) -> None:
    if not out_csv:
        return
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    gdf.drop(columns=list(GEOMETRY_COLUMNS)).to_csv(out_csv, index=False, encoding="utf-8")
    logging.info(f"[I/O] wrote attributes → {out_csv}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    cfg = cfg_from_args(args)
    setup_logging(cfg.log_level, cfg.log_file)

    _log_header("Storms", f"Building {args.storms} synthetic storm(s), seed={args.seed}")
    storms = make_storms(args.storms, seed=args.seed)

    layer = StormLayer(cfg)
    layer.build_frame(storms)
    layer.on_zoom_changed(args.zoom)

    t = ANCHOR_MS + args.time_offset_h * MS_PER_HOUR
    gdf = layer.on_time_changed(t)
    if args.play_s > 0:
        t, playing = advance_time(layer.time, args.play_s * 1000.0, args.speed, layer.time_range)
        gdf = layer.on_time_changed(t)
        logging.info(f"[Timeline] played {args.play_s:.1f}s at {args.speed}x, playing={playing}")

    rng = layer.time_range
    logging.info(f"[Timeline] window {rng.start_time} → {rng.end_time}, {len(rng.markers)} markers, t={layer.time}")
    for sid, msg in layer.rejected.items():
        logging.warning(f"[Storms] {sid} rejected: {msg}")
    for row in gdf.itertuples(index=False):
        logging.info(
            f"[Storms] {row.storm_id} {row.name}: {row.category} "
            f"{row.wind_speed:.0f} kt at ({row.position.y:.2f}, {row.position.x:.2f}) "
            f"interp={row.interpolated} track={row.track_points} pts "
            f"cone={'yes' if row.cone is not None else 'no'} rings={len(row.wind_circles)} "
            f"anim={row.animation} fps={row.fps}"
        )

    write_outputs(gdf, args.out_csv)
    _log_processed("Storms", len(gdf), len(storms) - len(gdf))
    layer.teardown()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
