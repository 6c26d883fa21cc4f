import random

from app.services.catalog import random_offset, to_ref
from tests.fixtures import FakeOutfit


class FixedRandom(random.Random):
    def __init__(self, value):
        super().__init__()
        self.value = value

    def random(self):
        return self.value


def test_random_offset_stays_in_range():
    assert random_offset(25, 10, FixedRandom(0.0)) == 0
    assert random_offset(25, 10, FixedRandom(0.5)) == 7
    assert random_offset(25, 10, FixedRandom(0.999)) == 14


def test_random_offset_small_category_starts_at_zero():
    assert random_offset(4, 10, FixedRandom(0.9)) == 0
    assert random_offset(10, 10, FixedRandom(0.9)) == 0
    assert random_offset(0, 10, FixedRandom(0.9)) == 0


def test_to_ref_keeps_what_the_worker_needs():
    ref = to_ref(FakeOutfit(5, "Denim Jacket", "/images/men/denim.jpg", cloth_type="Casuals", is_active=False))
    assert ref.id == 5
    assert ref.image_url == "/images/men/denim.jpg"
    assert ref.cloth_type == "Casuals"
    assert ref.is_active is False
