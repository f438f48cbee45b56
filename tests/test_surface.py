"""
Unit tests for the Pillow drawing surface and gradient fields.
"""

from PIL import Image

from catalog_studio.surface import Box, FontSpec, PillowSurface, gradient_array, load_font


class TestGradient:
    """Test gradient fields."""

    def test_linear_runs_corner_to_corner(self):
        """Test the linear gradient goes from top left to bottom right."""
        pixels = gradient_array(100, 50, '#000000', '#ffffff', 'linear')

        assert pixels.shape == (50, 100, 3)
        assert pixels[0, 0].max() < 5
        assert pixels[49, 99].min() > 250

    def test_horizontal_and_vertical(self):
        """Test horizontal and vertical gradients vary along one axis."""
        horizontal = gradient_array(100, 50, '#000000', '#ffffff', 'horizontal')
        vertical = gradient_array(100, 50, '#000000', '#ffffff', 'vertical')

        assert (horizontal[0] == horizontal[49]).all()
        assert (vertical[:, 0] == vertical[:, 99]).all()

    def test_radial_is_centred(self):
        """Test the radial gradient starts at the centre."""
        pixels = gradient_array(90, 90, '#ff0000', '#0000ff', 'radial')

        centre = pixels[45, 45]
        assert centre[0] > 240
        assert pixels[0, 0][2] > pixels[45, 45][2]


class TestPillowSurface:
    """Test the Pillow drawing surface."""

    def test_draw_image_fit_letterboxes_wide_image(self):
        """Test wide images are fitted to the box width and centred."""
        surface = PillowSurface(200, 200)
        drawn = surface.draw_image_fit(Image.new('RGBA', (100, 50), (255, 0, 0, 255)), Box(0, 0, 100, 100))

        assert drawn == Box(0, 25, 100, 50)
        assert surface.image.getpixel((50, 50)) == (255, 0, 0)
        assert surface.image.getpixel((50, 10)) == (0, 0, 0)

    def test_draw_image_fit_tall_image(self):
        """Test tall images are fitted to the box height."""
        surface = PillowSurface(200, 200)
        drawn = surface.draw_image_fit(Image.new('RGB', (50, 100), 'blue'), Box(0, 0, 100, 100))

        assert drawn == Box(25, 0, 50, 100)

    def test_text_width_grows_with_text(self):
        """Test longer text measures wider."""
        surface = PillowSurface(10, 10)
        font = FontSpec('Arial, sans-serif', 14)

        assert surface.text_width('', font) == 0
        assert surface.text_width('abcdef', font) > surface.text_width('abc', font)

    def test_unknown_family_still_loads(self):
        """Test an unknown font family falls back to a bundled font."""
        assert load_font('Comic Whatever, cursive', 12) is not None

    def test_fill_rect_blends_alpha(self):
        """Test translucent fills blend with the background."""
        surface = PillowSurface(10, 10, '#000000')
        surface.fill_rect(Box(0, 0, 10, 10), (255, 255, 255, 128))

        assert 120 <= surface.image.getpixel((5, 5))[0] <= 135
