import numpy as np
import pytest

from ifs_generator.rendering.raster import PointRasterizer, Viewport


class TestViewport:

    def test_default_offset_is_center_of_square(self):
        viewport = Viewport(300, 200)
        assert viewport.size == 200
        assert viewport.offset == (100.0, 100.0)
        assert viewport.radius == 200.0

    def test_to_pixels(self):
        viewport = Viewport(100, 100)
        px, py = viewport.to_pixels(np.array([[0.25, -0.1], [0.0, 0.0]]))
        assert px.tolist() == [75, 50]
        assert py.tolist() == [40, 50]

    def test_to_pixels_truncates_toward_zero(self):
        viewport = Viewport(100, 100)
        px, _ = viewport.to_pixels(np.array([[-0.505, 0.0], [0.1234, 0.0]]))
        # 50 - 50.5 = -0.5 truncates to 0; 50 + 12.34 truncates to 62
        assert px.tolist() == [0, 62]

    def test_scale_and_offset(self):
        viewport = Viewport(100, 50, scale=2.0, offset=(10, 5))
        px, py = viewport.to_pixels(np.array([[0.5, 0.25]]))
        assert (px[0], py[0]) == (60, 30)

    def test_flip_y(self):
        viewport = Viewport(100, 100, flip_y=True)
        _, py = viewport.to_pixels(np.array([[0.0, 0.25]]))
        assert py[0] == 25

    def test_non_finite_points_fall_outside(self):
        viewport = Viewport(10, 10)
        px, py = viewport.to_pixels(np.array([[np.nan, 0.0], [np.inf, 0.0], [1e300, 0.0]]))
        assert px[0] == -1 and px[1] == -1
        assert px[2] >= 10

    @pytest.mark.parametrize("kwargs", [
        {'width': 0, 'height': 10},
        {'width': 10, 'height': -1},
        {'width': 10, 'height': 10, 'scale': 0},
    ])
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            Viewport(**kwargs)

    def test_fit_frames_points(self):
        rng = np.random.default_rng(0)
        points = rng.random((1000, 2)) * [4.0, 2.0] + [10.0, -3.0]
        viewport = Viewport.fit(points, 200, 100, margin=0.1)
        px, py = viewport.to_pixels(points)
        assert px.min() >= 0 and px.max() < 200
        assert py.min() >= 0 and py.max() < 100

    def test_fit_with_flip_y(self):
        points = np.array([[0.0, 0.0], [0.0, 10.0]])
        viewport = Viewport.fit(points, 100, 100, margin=0.1, flip_y=True)
        _, py = viewport.to_pixels(points)
        # Larger y is drawn higher up
        assert py[1] < py[0]

    def test_fit_single_point(self):
        viewport = Viewport.fit(np.array([[3.0, 4.0]]), 50, 50)
        px, py = viewport.to_pixels(np.array([[3.0, 4.0]]))
        assert (px[0], py[0]) == (25, 25)

    def test_fit_without_finite_points(self):
        viewport = Viewport.fit(np.array([[np.nan, np.nan]]), 50, 50)
        assert viewport.scale == 1.0

    def test_fit_rejects_bad_margin(self):
        with pytest.raises(ValueError):
            Viewport.fit(np.zeros((1, 2)), 10, 10, margin=0.5)


class TestPointRasterizer:

    def test_background(self):
        rasterizer = PointRasterizer(Viewport(4, 3), background=0x0A0B0C)
        assert rasterizer.image.shape == (3, 4, 3)
        assert np.all(rasterizer.image == [10, 11, 12])
        assert rasterizer.coverage() == 0.0

    def test_plot(self):
        rasterizer = PointRasterizer(Viewport(10, 10))
        plotted = rasterizer.plot(np.array([[0.0, 0.0], [0.2, 0.3], [5.0, 5.0]]),
                                  np.array([0xFF0000, 0x00FF00, 0x0000FF]))
        assert plotted == 2
        assert rasterizer.image[5, 5].tolist() == [255, 0, 0]
        assert rasterizer.image[8, 7].tolist() == [0, 255, 0]
        assert rasterizer.coverage() == pytest.approx(0.02)

    def test_later_points_overwrite(self):
        rasterizer = PointRasterizer(Viewport(10, 10))
        rasterizer.plot(np.array([[0.0, 0.0]]), np.array([0xFF0000]))
        rasterizer.plot(np.array([[0.0, 0.0]]), np.array([0x0000FF]))
        assert rasterizer.image[5, 5].tolist() == [0, 0, 255]

    def test_color_count_mismatch(self):
        rasterizer = PointRasterizer(Viewport(10, 10))
        with pytest.raises(ValueError):
            rasterizer.plot(np.zeros((2, 2)), np.array([0xFFFFFF]))

    def test_clear(self):
        rasterizer = PointRasterizer(Viewport(10, 10))
        rasterizer.plot(np.zeros((1, 2)), np.array([0xFFFFFF]))
        rasterizer.clear()
        assert rasterizer.coverage() == 0.0
