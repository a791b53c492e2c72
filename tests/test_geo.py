import pytest

from attendance.geo import accuracy_label, distance, within_radius

PARIS = (48.8566, 2.3522)
LONDON = (51.5074, -0.1278)


@pytest.mark.parametrize("point", [(0.0, 0.0), PARIS, (-33.8688, 151.2093), (89.9, -179.9)])
def test_distance_to_self_is_zero(point):
    assert distance(*point, *point) == 0


def test_distance_is_symmetric():
    assert distance(*PARIS, *LONDON) == pytest.approx(distance(*LONDON, *PARIS))


def test_paris_london():
    assert distance(*PARIS, *LONDON) == pytest.approx(343_500, rel=0.01)


def test_one_millidegree_latitude_is_about_111_meters():
    assert distance(10.0, 20.0, 10.001, 20.0) == pytest.approx(111.2, abs=0.5)


def test_antipodal_points_do_not_fail():
    assert distance(0, 0, 0, 180) == pytest.approx(20_015_087, rel=1e-4)


def test_within_radius():
    ok, meters = within_radius(10.0, 20.0, 10.0003, 20.0, 50)
    assert ok
    assert meters == pytest.approx(33.4, abs=0.5)

    ok, meters = within_radius("10.0", "20.0", "10.001", "20.0", 50)
    assert not ok
    assert meters > 100


@pytest.mark.parametrize(
    "accuracy,label",
    [(None, "unknown"), (3, "excellent"), (12, "good"), (30, "fair"), (45, "poor")],
)
def test_accuracy_label(accuracy, label):
    assert accuracy_label(accuracy) == label
