"""EchoDay - task and reminder scheduling engine."""
