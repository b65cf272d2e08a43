"""Image model: buffers, filters, homography and the pipeline."""
