import numpy as np
import pytest
from PIL import Image as PILImage

from texquilt.errors import InvalidParameters, NoValidCandidates, OutOfBounds, ShapeMismatch
from texquilt.image import RGB8Image, RGBA8Image, Block, as_image, candidate_origins, sample


class TestAsImage:

    def test_rgb_array(self, noise_texture):
        image = as_image(noise_texture)
        assert isinstance(image, RGB8Image)
        assert (image.width, image.height, image.channels) == (20, 20, 3)
        assert np.array_equal(image.pixels, noise_texture)

    def test_rgba_array(self):
        image = as_image(np.zeros((5, 7, 4), dtype=np.uint8))
        assert isinstance(image, RGBA8Image)
        assert (image.width, image.height) == (7, 5)

    def test_grayscale_is_promoted_to_rgb(self):
        gray = np.arange(12, dtype=np.uint8).reshape(3, 4)
        image = as_image(gray)
        assert isinstance(image, RGB8Image)
        for c in range(3):
            assert np.array_equal(image.pixels[:, :, c], gray)

    def test_float_array_is_scaled(self):
        image = as_image(np.ones((2, 2, 3), dtype=np.float32))
        assert image.pixels.dtype == np.uint8
        assert np.all(image.pixels == 255)

    def test_wide_integers_are_clipped(self):
        image = as_image(np.full((2, 2, 3), 1000, dtype=np.int32))
        assert np.all(image.pixels == 255)

    def test_unsupported_channel_count(self):
        with pytest.raises(ShapeMismatch):
            as_image(np.zeros((4, 4, 2), dtype=np.uint8))

    def test_image_is_passed_through(self, noise_texture):
        image = as_image(noise_texture)
        assert as_image(image) is image


class TestImage:

    def test_pixels_are_read_only(self, noise_texture):
        image = as_image(noise_texture)
        with pytest.raises(ValueError):
            image.pixels[0, 0, 0] = 1

    def test_caller_mutation_does_not_leak(self, noise_texture):
        source = noise_texture.copy()
        image = as_image(source)
        source[:] = 0
        assert np.array_equal(image.pixels, noise_texture)

    def test_get_pixel_uses_x_then_y(self):
        pixels = np.zeros((3, 4, 3), dtype=np.uint8)
        pixels[2, 1] = (10, 20, 30)
        image = as_image(pixels)
        assert image.get_pixel(1, 2) == (10, 20, 30)
        assert image.get_pixel(2, 1) == (0, 0, 0)

    def test_get_pixel_out_of_bounds(self, noise_texture):
        image = as_image(noise_texture)
        with pytest.raises(OutOfBounds):
            image.get_pixel(20, 0)
        with pytest.raises(OutOfBounds):
            image.get_pixel(0, -1)

    def test_pil_conversion(self):
        pil = PILImage.new('L', (6, 4), color=77)
        image = RGB8Image.from_pil(pil)
        assert isinstance(image, RGB8Image)
        assert image.get_pixel(5, 3) == (77, 77, 77)

        back = image.to_pil()
        assert back.mode == 'RGB'
        assert back.size == (6, 4)

    def test_pil_rgba_kept(self):
        pil = PILImage.new('RGBA', (3, 3), color=(1, 2, 3, 4))
        image = RGBA8Image.from_pil(pil)
        assert isinstance(image, RGBA8Image)
        assert image.get_pixel(0, 0) == (1, 2, 3, 4)


class TestSample:

    def test_block_is_a_view(self, noise_texture):
        image = as_image(noise_texture)
        block = sample(image, (3, 5), 8)
        assert block.pixels.shape == (8, 8, 3)
        assert np.shares_memory(block.pixels, image.pixels)
        assert np.array_equal(block.pixels, noise_texture[3:11, 5:13])

    def test_sampling_twice_is_identical(self, noise_texture):
        image = as_image(noise_texture)
        first = sample(image, (4, 4), 6)
        second = sample(image, (4, 4), 6)
        assert first == second
        assert np.array_equal(first.pixels, second.pixels)
        assert first.pixels.tobytes() == second.pixels.tobytes()

    def test_sample_from_array(self, noise_texture):
        block = sample(noise_texture, (0, 0), 20)
        assert isinstance(block, Block)
        assert np.shares_memory(block.pixels, noise_texture)

    def test_block_touching_the_edge(self, noise_texture):
        block = sample(noise_texture, (12, 12), 8)
        assert block.pixels.shape == (8, 8, 3)

    @pytest.mark.parametrize("origin", [(13, 0), (0, 13), (-1, 0), (0, -2)])
    def test_out_of_bounds(self, noise_texture, origin):
        with pytest.raises(OutOfBounds):
            sample(noise_texture, origin, 8)

    def test_non_positive_size(self, noise_texture):
        with pytest.raises(InvalidParameters):
            sample(noise_texture, (0, 0), 0)


class TestCandidateOrigins:

    def test_raster_order(self):
        origins = candidate_origins((10, 12, 3), 8)
        assert origins.shape == (15, 2)
        assert tuple(origins[0]) == (0, 0)
        assert tuple(origins[1]) == (0, 1)
        assert tuple(origins[-1]) == (2, 4)

    def test_exact_fit(self):
        origins = candidate_origins((8, 8, 3), 8)
        assert origins.tolist() == [[0, 0]]

    def test_source_smaller_than_block(self):
        with pytest.raises(NoValidCandidates):
            candidate_origins((4, 16, 3), 8)
