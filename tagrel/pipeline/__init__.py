"""Release pipeline: trigger, build runners, artifact store and publisher."""
