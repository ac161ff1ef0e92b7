#!/usr/bin/env python3
"""
Dive Profile Summary
====================

This script demonstrates how to use the shearwater_log decoder to:
1. Open a raw dive log for a given model
2. Read dive-level fields
3. Walk the sample stream with a callback
4. Summarise the profile (deepest point, coldest reading, gas switches)

Usage:
    source .venv/bin/activate
    python examples/profile_summary.py dive.bin [model]
"""

import sys

from shearwater_log import (
    FieldType,
    SampleType,
    ShearwaterError,
    ShearwaterModel,
    ShearwaterParser,
)


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return 2

    model = ShearwaterModel.from_name(sys.argv[2]) if len(sys.argv) > 2 else ShearwaterModel.PETREL

    # ==========================================================================
    # 1. Open the log
    # ==========================================================================
    # The model picks the family (Predator or Petrel), which decides the
    # log layout rules. Nothing is decoded until a field is requested.

    parser = ShearwaterParser.from_file(sys.argv[1], model=model)

    # ==========================================================================
    # 2. Dive-level fields
    # ==========================================================================

    try:
        print(f"Start:      {parser.get_datetime():%Y-%m-%d %H:%M}")
        print(f"Dive time:  {parser.get_field(FieldType.DIVETIME) // 60} min")
        print(f"Max depth:  {parser.get_field(FieldType.MAXDEPTH):.1f} m")
        print(f"Mode:       {parser.get_field(FieldType.DIVEMODE).value}")
        for mix in parser.get_gasmixes():
            print(f"Gas:        {mix}")
    except ShearwaterError as e:
        print(f"Cannot decode {sys.argv[1]}: {e}")
        return 1

    # ==========================================================================
    # 3. Walk the samples
    # ==========================================================================
    # Every tick starts with a TIME sample; the values that follow belong
    # to that tick until the next TIME arrives.

    profile = {"time": 0, "deepest": (0.0, 0), "coldest": None, "switches": []}
    current_mix = None

    def on_sample(sample):
        nonlocal current_mix
        if sample.type is SampleType.TIME:
            profile["time"] = sample.value
        elif sample.type is SampleType.DEPTH and sample.value > profile["deepest"][0]:
            profile["deepest"] = (sample.value, profile["time"])
        elif sample.type is SampleType.TEMPERATURE:
            if profile["coldest"] is None or sample.value < profile["coldest"]:
                profile["coldest"] = sample.value
        elif sample.type is SampleType.GASMIX and sample.value != current_mix:
            if current_mix is not None:
                profile["switches"].append((profile["time"], sample.value))
            current_mix = sample.value

    parser.samples_foreach(on_sample)

    # ==========================================================================
    # 4. Summary
    # ==========================================================================

    depth, at = profile["deepest"]
    print(f"\nDeepest:    {depth:.1f} m at {at // 60}:{at % 60:02d}")
    if profile["coldest"] is not None:
        print(f"Coldest:    {profile['coldest']:.0f} °C")

    mixes = parser.get_gasmixes()
    for time, index in profile["switches"]:
        print(f"Switch:     {time // 60}:{time % 60:02d} to {mixes[index]}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
