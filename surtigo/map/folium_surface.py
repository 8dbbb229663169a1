"""Render a MapSurface as a standalone Leaflet page with folium."""

from pathlib import Path

import folium
from branca.element import MacroElement
from jinja2 import Template

from .. import config
from .surface import CircleFeature, MapSurface, MarkerFeature


class MapInteractions(MacroElement):
    """
    Browser-side wiring of map input to the web API.

    Double-click, context menu and a 700 ms single-finger press post a new
    search center; clicks on station markers post a selection. Both reload
    the page so the server-side state is redrawn.
    """

    _template = Template(
        """
        {% macro script(this, kwargs) %}
        (function() {
            var map = {{ this._parent.get_name() }};
            var api = {{ this.api_base|tojson }};
            function post(path, body) {
                return fetch(api + path, {
                    method: 'POST',
                    headers: {'Content-Type': 'application/json'},
                    body: body ? JSON.stringify(body) : null
                });
            }
            function relocate(latlng) {
                post('/search-center', {latitude: latlng.lat, longitude: latlng.lng})
                    .then(function() { window.location.reload(); });
            }
            map.on('dblclick', function(e) { relocate(e.latlng); });
            map.on('contextmenu', function(e) {
                e.originalEvent.preventDefault();
                relocate(e.latlng);
            });

            var container = map.getContainer();
            var timer = null;
            function disarm() { clearTimeout(timer); timer = null; }
            container.addEventListener('touchstart', function(e) {
                disarm();
                if (e.touches.length !== 1) { return; }
                var touch = e.touches[0];
                var rect = container.getBoundingClientRect();
                var latlng = map.containerPointToLatLng(
                    [touch.clientX - rect.left, touch.clientY - rect.top]);
                timer = setTimeout(function() { timer = null; relocate(latlng); },
                                   {{ this.long_press_ms }});
            }, {passive: true});
            ['touchend', 'touchmove', 'touchcancel'].forEach(function(name) {
                container.addEventListener(name, disarm, {passive: true});
            });

            container.addEventListener('click', function(e) {
                var el = e.target.closest('[data-station-id]');
                if (!el) { return; }
                post('/stations/' + encodeURIComponent(el.dataset.stationId) + '/select')
                    .then(function(resp) { if (resp.ok) { window.location.reload(); } });
            });
        })();
        {% endmacro %}
        """
    )

    def __init__(self, api_base: str, long_press_ms: int):
        super().__init__()
        self._name = "MapInteractions"
        self.api_base = api_base
        self.long_press_ms = long_press_ms


class FoliumMapSurface(MapSurface):
    """
    MapSurface that can be exported as HTML.

    Args:
        api_base: Path of the web API; when set, map input is posted back to it
    """

    def __init__(self, *args, api_base: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_base = api_base

    def render(self) -> folium.Map:
        """Build a folium map of the current viewport, basemap and layers."""
        view = self.viewport
        fmap = folium.Map(
            location=list(view.center.as_tuple()),
            zoom_start=view.zoom,
            tiles=None,
            max_zoom=self.max_zoom,
            zoom_control=True,
            double_click_zoom=False,
            width="100%",
            height="100%",
        )

        if self.basemap_url:
            folium.TileLayer(
                tiles=self.basemap_url,
                attr=config.TILE_ATTRIBUTION,
                subdomains=config.TILE_SUBDOMAINS,
                max_zoom=self.max_zoom,
                control=False,
            ).add_to(fmap)

        for name, features in self.layers.items():
            group = folium.FeatureGroup(name=name, control=False)
            for feature in features:
                _feature_to_folium(feature).add_to(group)
            group.add_to(fmap)

        if self.api_base is not None:
            fmap.add_child(
                MapInteractions(self.api_base, int(config.LONG_PRESS_S * 1000))
            )
        return fmap

    def to_html(self) -> str:
        return self.render().get_root().render()

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        self.render().save(str(path))
        return path


def _feature_to_folium(feature: CircleFeature | MarkerFeature):
    if isinstance(feature, CircleFeature):
        return folium.CircleMarker(
            location=list(feature.point.as_tuple()),
            radius=feature.radius,
            color=feature.color,
            weight=feature.weight,
            opacity=feature.opacity,
            fill=True,
            fill_color=feature.fill_color,
            fill_opacity=feature.fill_opacity,
            popup=folium.Popup(feature.popup_html) if feature.popup_html else None,
        )

    icon = folium.DivIcon(
        html=feature.icon_html,
        icon_size=feature.icon_size,
        icon_anchor=feature.icon_anchor,
        popup_anchor=feature.popup_anchor,
        class_name="",
    )
    popup = None
    if feature.popup_html:
        popup = folium.Popup(feature.popup_html, max_width=300)
    return folium.Marker(
        location=list(feature.point.as_tuple()),
        icon=icon,
        popup=popup,
        interactive=feature.interactive,
        z_index_offset=feature.z_index_offset,
    )
