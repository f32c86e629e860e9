# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Self-contained Cesium HTML page for a CZML document.

The page loads CesiumJS from the CDN and embeds the CZML packets inline,
so a single file can be opened in any browser. The viewer clock is
driven by the document header.

Uses only stdlib html/json/pathlib.
"""

import html
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CESIUM_VERSION = "1.124"
_CDN = f"https://cesium.com/downloads/cesiumjs/releases/{CESIUM_VERSION}/Build/Cesium"


def _embed(packets: list[dict]) -> str:
    # "</" would close the script block early
    return json.dumps(packets, indent=2, ensure_ascii=False).replace("</", "<\\/")


def generate_viewer_html(
    czml_packets: list[dict],
    title: str = "orbit-czml",
    cesium_token: str = "",
) -> str:
    """
    HTML page showing czml_packets in a Cesium viewer.

    Args:
        czml_packets: Complete CZML document (header first).
        title: Page title and overlay text.
        cesium_token: Cesium Ion access token. Optional; without it the
            viewer falls back to the default imagery.
    """
    safe_title = html.escape(title)
    token_line = ""
    if cesium_token:
        token_line = f"Cesium.Ion.defaultAccessToken = {json.dumps(cesium_token)};"

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{safe_title}</title>
    <script src="{_CDN}/Cesium.js"></script>
    <link href="{_CDN}/Widgets/widgets.css" rel="stylesheet">
    <style>
        html, body, #cesiumContainer {{
            width: 100%;
            height: 100%;
            margin: 0;
            padding: 0;
            overflow: hidden;
            background: #000;
        }}
        #title {{
            position: absolute;
            top: 8px;
            left: 8px;
            padding: 6px 12px;
            background: rgba(0, 0, 0, 0.6);
            color: #fff;
            font: 13px/1.4 sans-serif;
            border-radius: 4px;
            pointer-events: none;
            z-index: 100;
        }}
    </style>
</head>
<body>
    <div id="cesiumContainer"></div>
    <div id="title">{safe_title}</div>
    <script>
        {token_line}
        var czml = {_embed(czml_packets)};
        var viewer = new Cesium.Viewer("cesiumContainer", {{
            shouldAnimate: true,
            timeline: true,
            animation: true,
        }});
        viewer.scene.globe.enableLighting = true;
        Cesium.CzmlDataSource.load(czml).then(function (dataSource) {{
            viewer.dataSources.add(dataSource);
            viewer.clock.shouldAnimate = true;
        }});
    </script>
</body>
</html>"""


def write_viewer_html(
    czml_packets: list[dict],
    path: str | Path,
    title: str = "orbit-czml",
    cesium_token: str = "",
) -> Path:
    """Write the viewer page to path, creating parent directories. Returns the path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        f.write(generate_viewer_html(czml_packets, title=title, cesium_token=cesium_token))
    logger.info("Wrote Cesium viewer to %s", out)
    return out
