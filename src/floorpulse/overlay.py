from __future__ import annotations

from dataclasses import dataclass, field
import math
import time
from typing import Dict, Mapping, Optional, Tuple

from .models import Marker, MarkerKind, Vector3
from .runtime import EngineRunner

OUTSIDE_COLOR = (0, 255, 0)
INSIDE_COLOR = (255, 0, 0)


@dataclass
class OverlayState:
    """Scene-side copy of the markers plus the reading panel text."""

    markers: Dict[int, Marker] = field(default_factory=dict)
    fields: Dict[str, str] = field(default_factory=dict)
    status: Optional[str] = None
    status_updated_at: Optional[float] = None

    def create_marker(self, marker: Marker) -> None:
        self.markers[marker.marker_id] = marker

    def update_marker(self, marker: Marker) -> None:
        self.markers[marker.marker_id] = marker

    def remove_marker(self, marker_id: int) -> None:
        self.markers.pop(marker_id, None)

    def show_reading(self, fields: Mapping[str, str]) -> None:
        self.fields = dict(fields)

    def show_status(self, message: str) -> None:
        self.status = message
        self.status_updated_at = time.time()


@dataclass(frozen=True)
class Projection:
    """Fixed oblique projection from scene units to screen pixels."""

    origin: Tuple[int, int]
    pixels_per_unit: float = 14.0
    depth_angle_radians: float = math.radians(30)
    depth_factor: float = 0.5

    def project(self, point: Vector3) -> Tuple[int, int]:
        x, y, z = point
        depth = z * self.depth_factor
        offset_x = depth * math.cos(self.depth_angle_radians)
        offset_y = depth * math.sin(self.depth_angle_radians)
        screen_x = self.origin[0] + (x + offset_x) * self.pixels_per_unit
        screen_y = self.origin[1] - (y + offset_y) * self.pixels_per_unit
        return int(screen_x), int(screen_y)


def _draw_text(
    surface: object,
    text: str,
    font: object,
    color: Tuple[int, int, int],
    position: Tuple[int, int],
) -> None:
    text_surface = font.render(text, True, color)
    surface.blit(text_surface, position)


def _draw_building(
    pygame_module: object,
    screen: object,
    projection: Projection,
    floors: int,
    floor_spacing: float,
    color: Tuple[int, int, int],
) -> None:
    footprint = ((-20.0, -25.0), (5.0, -25.0), (5.0, -5.0), (-20.0, -5.0))
    for floor in range(floors + 1):
        height = floor * floor_spacing
        points = [projection.project((x, height, z)) for x, z in footprint]
        pygame_module.draw.polygon(screen, color, points, 1)
    for x, z in footprint:
        bottom = projection.project((x, 0.0, z))
        top = projection.project((x, floors * floor_spacing, z))
        pygame_module.draw.line(screen, color, bottom, top, 1)


def _draw_marker(
    pygame_module: object,
    screen: object,
    projection: Projection,
    marker: Marker,
) -> None:
    color = OUTSIDE_COLOR if marker.kind == MarkerKind.OUTSIDE else INSIDE_COLOR
    center = projection.project(marker.position)
    scale_x, scale_y, _ = marker.scale
    # Markers lie flat, so the y scale shows up as screen depth.
    width = max(int(2 * scale_x * projection.pixels_per_unit), 2)
    height = max(int(2 * scale_y * projection.pixels_per_unit * projection.depth_factor), 2)
    alpha = int(max(min(marker.opacity, 1.0), 0.0) * 255)
    layer = pygame_module.Surface((width + 2, height + 2), pygame_module.SRCALPHA)
    pygame_module.draw.ellipse(layer, (*color, alpha), layer.get_rect().inflate(-2, -2), 1)
    screen.blit(layer, (center[0] - width // 2 - 1, center[1] - height // 2 - 1))


def _render_overlay(
    pygame_module: object,
    screen: object,
    state: OverlayState,
    font: object,
    small_font: object,
    floors: int,
    floor_spacing: float,
) -> None:
    screen_width, screen_height = screen.get_size()
    background = (10, 12, 18)
    panel = (24, 28, 38)
    accent = (57, 62, 76)
    text_color = (220, 224, 232)
    muted_text = (160, 168, 180)

    screen.fill(background)
    margin = 24
    panel_width = 320
    scene_rect = pygame_module.Rect(
        margin, margin, screen_width - panel_width - 3 * margin, screen_height - 2 * margin
    )
    info_rect = pygame_module.Rect(
        scene_rect.right + margin, margin, panel_width, screen_height - 2 * margin
    )
    pygame_module.draw.rect(screen, panel, scene_rect, border_radius=12)
    pygame_module.draw.rect(screen, panel, info_rect, border_radius=12)

    projection = Projection(origin=(scene_rect.centerx + 80, scene_rect.bottom - 60))
    _draw_building(pygame_module, screen, projection, floors, floor_spacing, accent)
    for marker in list(state.markers.values()):
        _draw_marker(pygame_module, screen, projection, marker)

    info_x = info_rect.x + 20
    info_y = info_rect.y + 20
    _draw_text(screen, "Telemetry", font, text_color, (info_x, info_y))
    info_y += 40
    if not state.fields:
        _draw_text(screen, "Waiting for telemetry...", small_font, muted_text, (info_x, info_y))
        info_y += 28
    for label, value in state.fields.items():
        _draw_text(screen, f"{label}: {value}", small_font, text_color, (info_x, info_y))
        info_y += 26

    if state.status:
        pygame_module.draw.line(
            screen,
            accent,
            (info_rect.x + 16, info_y + 8),
            (info_rect.right - 16, info_y + 8),
            2,
        )
        _draw_text(screen, state.status, small_font, muted_text, (info_x, info_y + 20))

    _draw_text(
        screen,
        f"Markers: {len(state.markers)}",
        small_font,
        muted_text,
        (info_x, info_rect.bottom - 36),
    )


def run_overlay(
    runner: EngineRunner,
    state: OverlayState,
    fps: int = 60,
    windowed: bool = True,
    window_size: Tuple[int, int] = (1280, 720),
    floors: int = 4,
    max_ticks: int = 0,
) -> None:
    """Drive the engine from the pygame frame loop until the window closes."""
    import pygame

    pygame.init()
    pygame.display.set_caption("Building Pulse")
    flags = 0 if windowed else pygame.FULLSCREEN
    screen = pygame.display.set_mode(window_size if windowed else (0, 0), flags)
    clock = pygame.time.Clock()
    font = pygame.font.Font(None, 36)
    small_font = pygame.font.Font(None, 24)
    floor_spacing = runner.controller.pool.scene.floor_spacing

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False

        runner.run_once()
        _render_overlay(pygame, screen, state, font, small_font, floors, floor_spacing)
        pygame.display.flip()
        clock.tick(max(fps, 1))
        if max_ticks and runner.ticks >= max_ticks:
            running = False

    pygame.quit()
