import torch
import wandb

from src.trainer.logger import SampleLogger, to_wandb_image


class FakeRun:
    def __init__(self):
        self.calls = []
        self.finished = False

    def log(self, data, step=None):
        self.calls.append((step, data))

    def finish(self):
        self.finished = True


def test_metrics_respect_log_interval():
    run = FakeRun()
    logger = SampleLogger(run, log_interval=5)
    for step in range(12):
        logger.log_metrics({'loss': float(step)}, step=step)
    assert [step for step, _ in run.calls] == [0, 5, 10]


def test_samples_respect_sample_log_period():
    run = FakeRun()
    logger = SampleLogger(run, sample_log_period=20)
    image = torch.zeros(1, 4, 4, 3)
    logged = [logger.log_images({'fake_B': image}, step=step) for step in (0, 7, 20, 39, 40)]

    assert logged == [True, False, True, False, True]
    assert [step for step, _ in run.calls] == [0, 20, 40]
    assert isinstance(run.calls[0][1]['fake_B'], wandb.Image)


def test_without_run_nothing_is_logged():
    logger = SampleLogger(None)
    logger.log_metrics({'loss': 1.0}, step=0)
    assert not logger.log_images({'x': torch.zeros(2, 2, 3)}, step=0)
    logger.finish()


def test_finish_closes_run():
    run = FakeRun()
    logger = SampleLogger(run)
    logger.finish()
    assert run.finished
    assert logger.run is None


def test_to_wandb_image_accepts_batched_tensor():
    image = to_wandb_image(torch.ones(1, 4, 4, 3), caption='sample')
    assert isinstance(image, wandb.Image)
