#!/usr/bin/env python3
"""
Tests for TrackObjectRequest / SequenceRequestHandler.

The OpenCV tracker is replaced by a scripted backend so results are
deterministic; confidence still runs through cv2.matchTemplate.
"""

import sys
import unittest
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from object_tracker.core.exceptions import TrackingError
from object_tracker.core.models import NormalizedRect, Observation, PixelRect
from object_tracker.tracking.sequence import (
    OpenCVTrackerBackend,
    SequenceRequestHandler,
    TrackObjectRequest,
    crop,
    patch_similarity,
)

from fakes import FakeBackend, gray_patch, make_frame, smooth_image, textured_image

# Pixel box (50, 20, 100, 40) in a 200x100 image, in vision space
SEED_BOX = NormalizedRect(0.25, 0.4, 0.5, 0.4)


class SequenceTestCase(unittest.TestCase):

    def setUp(self):
        self.backends = []
        self.scripted_updates = []
        self.handler = SequenceRequestHandler(backend_factory=self._make_backend)
        self.completions = []
        self.frame = make_frame(textured_image())

    def _make_backend(self):
        backend = FakeBackend(self.scripted_updates)
        self.backends.append(backend)
        return backend

    def _perform(self, observation):
        request = TrackObjectRequest(
            observation,
            lambda req, err: self.completions.append((req, err)),
        )
        self.handler.perform([request], self.frame)
        return request


class TestSeeding(SequenceTestCase):

    def test_first_request_seeds_backend(self):
        seed = Observation(SEED_BOX)
        request = self._perform(seed)

        self.assertEqual(len(self.backends), 1)
        self.assertEqual(self.backends[0].init_calls, [(50, 20, 100, 40)])
        self.assertEqual(self.backends[0].update_calls, 0)
        self.assertEqual(self.handler.tracking_uuid, seed.uuid)

        result = request.results[0]
        self.assertEqual(result.uuid, seed.uuid)
        self.assertEqual(result.confidence, 1.0)
        self.assertAlmostEqual(result.bounding_box.y, SEED_BOX.y)
        self.assertAlmostEqual(result.bounding_box.height, SEED_BOX.height)

    def test_completion_called_once(self):
        request = self._perform(Observation(SEED_BOX))
        self.assertEqual(len(self.completions), 1)
        self.assertIs(self.completions[0][0], request)
        self.assertIsNone(self.completions[0][1])

    def test_new_uuid_reseeds(self):
        self._perform(Observation(SEED_BOX))
        self._perform(Observation(SEED_BOX))
        self.assertEqual(len(self.backends), 2)

    def test_seed_outside_frame(self):
        request = self._perform(Observation(NormalizedRect(1.5, 1.5, 0.1, 0.1)))

        self.assertEqual(request.results, [])
        self.assertIsInstance(request.error, TrackingError)
        self.assertIs(self.completions[0][1], request.error)
        self.assertIsNone(self.handler.tracking_uuid)

    def test_reset_forgets_target(self):
        seed = Observation(SEED_BOX)
        self._perform(seed)
        self.handler.reset()
        self._perform(seed)
        self.assertEqual(len(self.backends), 2)


class TestTracking(SequenceTestCase):

    def test_same_place_is_confident(self):
        self.scripted_updates.append((True, (50.0, 20.0, 100.0, 40.0)))
        seeded = self._perform(Observation(SEED_BOX)).results[0]

        result = self._perform(seeded).results[0]

        self.assertEqual(self.backends[0].update_calls, 1)
        self.assertEqual(result.uuid, seeded.uuid)
        self.assertAlmostEqual(result.confidence, 1.0, places=4)
        # Pixel box (50, 20, 100, 40) -> vision space
        self.assertAlmostEqual(result.bounding_box.x, 0.25)
        self.assertAlmostEqual(result.bounding_box.y, 0.4)
        self.assertAlmostEqual(result.bounding_box.width, 0.5)
        self.assertAlmostEqual(result.bounding_box.height, 0.4)

    def test_jump_to_unrelated_patch_is_low_confidence(self):
        self.scripted_updates.append((True, (10.0, 50.0, 100.0, 40.0)))
        seeded = self._perform(Observation(SEED_BOX)).results[0]

        result = self._perform(seeded).results[0]
        self.assertLess(result.confidence, 0.5)

    def test_slow_drift_loses_confidence(self):
        # 60px seed at pixel (50, 70) in a 400x200 frame, in vision space
        self.frame = make_frame(smooth_image())
        seed = Observation(NormalizedRect(0.125, 0.35, 0.15, 0.3))
        self.scripted_updates.extend(
            (True, (50.0 + 2 * step, 70.0, 60.0, 60.0)) for step in range(1, 41)
        )

        observation = self._perform(seed).results[0]
        self.assertEqual(self.backends[0].init_calls, [(50, 70, 60, 60)])
        confidences = []
        for _ in range(40):
            observation = self._perform(observation).results[0]
            confidences.append(observation.confidence)

        # 80px away from where the user tapped
        self.assertLess(confidences[-1], 0.9)
        self.assertLess(confidences[-1], confidences[0])

    def test_lost_target_keeps_box_with_zero_confidence(self):
        self.scripted_updates.append((False, (0.0, 0.0, 0.0, 0.0)))
        seeded = self._perform(Observation(SEED_BOX)).results[0]

        result = self._perform(seeded).results[0]
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.bounding_box, seeded.bounding_box)

    def test_result_clamped_to_image(self):
        self.scripted_updates.append((True, (150.0, 20.0, 100.0, 40.0)))
        seeded = self._perform(Observation(SEED_BOX)).results[0]

        result = self._perform(seeded).results[0]
        self.assertLessEqual(result.bounding_box.max_x, 1.0 + 1e-9)


class TestFrameValidation(SequenceTestCase):

    def test_grayscale_frame_rejected(self):
        self.frame = make_frame(np.zeros((100, 200), dtype=np.uint8))
        with self.assertRaises(TrackingError):
            self._perform(Observation(SEED_BOX))

    def test_empty_frame_rejected(self):
        self.frame = make_frame(np.zeros((0, 0, 3), dtype=np.uint8))
        with self.assertRaises(TrackingError):
            self._perform(Observation(SEED_BOX))

    def test_plain_array_accepted(self):
        self.frame = textured_image()
        request = self._perform(Observation(SEED_BOX))
        self.assertEqual(len(request.results), 1)


class TestHelpers(unittest.TestCase):

    def test_crop_clips(self):
        image = textured_image()
        self.assertEqual(crop(image, PixelRect(190, 90, 50, 50)).shape[:2], (10, 10))
        self.assertEqual(crop(image, PixelRect(300, 300, 10, 10)).size, 0)

    def test_similarity_identical(self):
        patch = gray_patch(40, 30)
        self.assertAlmostEqual(patch_similarity(patch, patch.copy()), 1.0, places=4)

    def test_similarity_resizes(self):
        patch = gray_patch(40, 30)
        score = patch_similarity(patch, gray_patch(44, 33, seed=1))
        self.assertGreaterEqual(score, 0.0)
        self.assertLessEqual(score, 1.0)

    def test_similarity_without_template(self):
        self.assertEqual(patch_similarity(None, gray_patch(40, 30)), 0.0)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            OpenCVTrackerBackend("boosting")


def moving_square(step: int, offset: int = 3) -> np.ndarray:
    """Flat background with a 40px textured square that moves right each step."""
    image = np.full((160, 240, 3), 90, dtype=np.uint8)
    x = 60 + step * offset
    image[60:100, x:x + 40] = textured_image(40, 40, seed=3)
    return image


class TestOpenCVBackends(unittest.TestCase):

    def test_trackers_follow_moving_square(self):
        for algorithm in ("csrt", "kcf", "mil"):
            with self.subTest(algorithm=algorithm):
                try:
                    backend = OpenCVTrackerBackend(algorithm)
                except ValueError as e:
                    self.skipTest(str(e))

                backend.init(moving_square(0), (60, 60, 40, 40))
                for step in range(1, 6):
                    found, box = backend.update(moving_square(step))
                    self.assertTrue(found)

                # Square ends at x = 75
                self.assertEqual(len(box), 4)
                self.assertAlmostEqual(box[0] + box[2] / 2, 95, delta=10)
                self.assertAlmostEqual(box[1] + box[3] / 2, 80, delta=10)


if __name__ == "__main__":
    unittest.main(verbosity=2)
