"""
Order processing sample.

One task queue, two global activities (``log``, ``send_notification``) and a
``process_order`` workflow with its own payment, inventory and shipping
activities. ``run.py`` wires everything in-process, without an orchestration
runtime, so the whole validate-dispatch-normalize path can be exercised with
``python -m examples.order_processing.run``.
"""
